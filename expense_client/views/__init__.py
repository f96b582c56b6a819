from expense_client.views.list_view import ListViewModel
from expense_client.views.summary_view import SummaryViewModel

__all__ = ["ListViewModel", "SummaryViewModel"]
