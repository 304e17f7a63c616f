"""Error types surfaced by exploration and navigation operations."""


class ScoutError(Exception):
    """Base class for errors reported to callers."""


class DuplicateIdentityError(ScoutError):
    """A waypoint name or road id is already taken."""


class UnknownReferenceError(ScoutError):
    """A road references a waypoint that does not exist."""


class CollaboratorFailure(ScoutError):
    """The world sampler or persistence store failed."""
