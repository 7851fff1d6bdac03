from .ab_campaign import ABCampaign, CampaignStatus
from .automation import AutomationFlow, AutomationSent, FlowStatus
from .notification import NotificationRecord
from .push_subscription import PushSubscriber

__all__ = [
    "ABCampaign",
    "AutomationFlow",
    "AutomationSent",
    "CampaignStatus",
    "FlowStatus",
    "NotificationRecord",
    "PushSubscriber",
]
