class PedestrianCountsError(Exception):
    """Base exception for the pedestrian counts query layer"""
    pass


class DataUnavailable(PedestrianCountsError):
    """Neither the tabular nor the geometry resource could be loaded"""
    pass


class ParseAnomaly(PedestrianCountsError):
    """A malformed value or column that the caller skips or defaults"""
    pass


class DivisionUndefined(PedestrianCountsError):
    """A percentage was requested against a zero base"""
    pass
