from brocante.models.user import User, Role
from brocante.models.listing import Listing, ListingStatus, ListingCondition
from brocante.models.order import Order, OrderTransition, OrderStatus, PaymentStatus, ShippingMethod
from brocante.models.review import Review
from brocante.models.conversation import Conversation, ConversationParticipant, Message
from brocante.models.password_reset_token import PasswordResetToken

__all__ = [
    "User",
    "Role",
    "Listing",
    "ListingStatus",
    "ListingCondition",
    "Order",
    "OrderTransition",
    "OrderStatus",
    "PaymentStatus",
    "ShippingMethod",
    "Review",
    "Conversation",
    "ConversationParticipant",
    "Message",
    "PasswordResetToken",
]
