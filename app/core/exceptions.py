"""
Domain exceptions.

The analytical core never raises these: insufficient data and missing
evidence are returned as data.  They are raised by the service layer
(loading, goal management) and translated to HTTP errors by the API.
"""


class CoachError(Exception):
    """Base class for service-level errors."""


class DataLoadError(CoachError):
    """The metric export could not be turned into a table."""


class GoalNotFoundError(CoachError):
    """No goal exists with the requested id."""

    def __init__(self, goal_id: str):
        super().__init__(f"Goal '{goal_id}' not found")
        self.goal_id = goal_id
