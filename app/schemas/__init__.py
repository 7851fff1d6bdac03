from .automation import FlowCreate, FlowToggle, FlowUpdate, SuccessResponse, TickResponse
from .campaign import CampaignCreate, CampaignSendResponse
from .push import BroadcastRequest, BroadcastResponse
from .subscription import SubscribeRequest, SubscribeResponse, SubscriberCount

__all__ = [
    "BroadcastRequest",
    "BroadcastResponse",
    "CampaignCreate",
    "CampaignSendResponse",
    "FlowCreate",
    "FlowToggle",
    "FlowUpdate",
    "SubscribeRequest",
    "SubscribeResponse",
    "SubscriberCount",
    "SuccessResponse",
    "TickResponse",
]
