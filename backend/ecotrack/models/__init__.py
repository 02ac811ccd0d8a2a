from ecotrack.models.alert import Alert
from ecotrack.models.approval import ManagerApproval

__all__ = ["Alert", "ManagerApproval"]
