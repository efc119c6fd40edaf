"""Attribution exceptions."""


class AttributionError(ValueError):
    """Raised when an event or extrinsic does not have the expected shape.

    Unresolvable attributions are not errors: they produce records with an
    empty validator and era 0.
    """


__all__ = ["AttributionError"]
