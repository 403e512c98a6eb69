"""
Defines the abstract base class for all reporters.
"""

from abc import ABC, abstractmethod

from ..models.usage import UsageSnapshot


class BaseReporter(ABC):
    """
    Abstract Base Class for all reporters.
    """

    @abstractmethod
    def report(self, snapshot: UsageSnapshot):
        """
        Takes a usage snapshot and presents it in a specific format.
        """
        pass
