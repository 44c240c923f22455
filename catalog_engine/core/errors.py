# catalog_engine/core/errors.py


class InvalidInputError(ValueError):
    """
    Raised at the entry of a core operation when the caller passed something
    the operation cannot work with (bad coordinates, negative budget or cost,
    empty required parameter, non-callable comparator).

    Never raised for legitimate empty inputs: those produce empty results.
    """
