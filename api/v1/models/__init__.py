from api.v1.models.user import User
from api.v1.models.transaction import Transaction, TransactionType
from api.v1.models.notification import (
    Notification,
    NotificationType,
    NotificationPriority,
)
from api.v1.models.linked_account import LinkedAccount, AccountProvider
from api.v1.models.savings_goal import SavingsGoal
from api.v1.models.blacklisted_token import BlacklistedToken
