import logging
from datetime import date
from typing import Dict, List, Optional

from models import report
from models import sales as sales_model
from services.assistant import AssistantChat
from services.auth import authenticate
from utils.file_manager import SESSION_FILE, read_json, write_json

LOG = logging.getLogger(__name__)

class AppState:
    """Everything the UI holds between requests, owned by whoever created it.

    ``load()`` at startup restores the sales list and the persisted login;
    ``logout()`` clears the user and the persisted session.
    """

    def __init__(self, assistant: Optional[AssistantChat] = None):
        self.user: Optional[Dict] = None
        self.sales: List[Dict] = []
        self.month_filter = date.today().isoformat()[:7]
        self.payment_filter = sales_model.ALL
        self.group_by = "product"
        self.assistant = assistant or AssistantChat()

    def load(self):
        self.sales = sales_model.all_sales()
        try:
            saved = read_json(SESSION_FILE)
        except (OSError, ValueError):
            LOG.warning("Could not read saved session, starting logged out")
            saved = None
        self.user = saved if isinstance(saved, dict) and saved.get("email") else None
        LOG.info("Loaded %d sales, user=%s", len(self.sales), self.user and self.user["email"])
        return self

    def login(self, email: str, pin: str) -> Optional[Dict]:
        user = authenticate(email, pin)
        if user is None:
            LOG.warning("Rejected login for %s", email)
            return None
        self.user = user
        write_json(SESSION_FILE, user)
        return user

    def logout(self):
        self.user = None
        write_json(SESSION_FILE, None)
        self.assistant.reset()

    @property
    def logged_in(self) -> bool:
        return self.user is not None

    def set_filters(self, month: Optional[str] = None, payment: Optional[str] = None, group_by: Optional[str] = None):
        if month is not None:
            self.month_filter = month
        if payment is not None:
            if payment != sales_model.ALL and payment not in sales_model.PAYMENT_METHODS:
                raise ValueError(f"Unknown payment method: {payment}")
            self.payment_filter = payment
        if group_by is not None:
            if group_by not in report.GROUP_BY_FIELDS:
                raise ValueError(f"Cannot group by {group_by!r}")
            self.group_by = group_by

    def save_sale(self, form: Dict) -> Dict:
        sale = sales_model.build_sale(form)
        self.sales = sales_model.save_sale(sale)
        return sale

    def delete_sale(self, sale_id: str):
        self.sales = sales_model.delete_sale(sale_id)

    def filtered_sales(self, month: Optional[str] = None, payment: Optional[str] = None) -> List[Dict]:
        month = self.month_filter if month is None else month
        payment = self.payment_filter if payment is None else payment
        return sales_model.sort_recent(sales_model.filter_sales(self.sales, month, payment))

    def summary(self, **filters) -> Dict:
        return report.summarize(self.filtered_sales(**filters))

    def report(self, group_by: Optional[str] = None, **filters) -> Dict:
        return report.build_report(self.filtered_sales(**filters), group_by or self.group_by)

    def ask(self, question: str, **filters) -> Optional[str]:
        return self.assistant.ask(question, self.filtered_sales(**filters))
