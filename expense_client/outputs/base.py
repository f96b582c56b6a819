# expense_client/outputs/base.py
from abc import ABC, abstractmethod

class BaseOutput(ABC):
    @abstractmethod
    def append(self, transactions, month=None):
        """Write transactions to the chosen sink and return the file path."""
        pass
