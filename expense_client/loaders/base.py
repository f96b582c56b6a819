# expense_client/loaders/base.py
from abc import ABC, abstractmethod

class BaseLoader(ABC):
    @abstractmethod
    def load(self, source):
        """
        Return Transaction instances read from ``source`` (a path or a
        binary file object).
        """
        pass
