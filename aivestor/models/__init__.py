from aivestor.models.alert import PriceAlert
from aivestor.models.auth_token import OneTimeToken
from aivestor.models.base import Base
from aivestor.models.brokerage_connection import BrokerageConnection
from aivestor.models.holding import Holding
from aivestor.models.nudge import Nudge
from aivestor.models.portfolio import PortfolioDocument
from aivestor.models.transaction import TradeTransaction
from aivestor.models.user import User

__all__ = [
    "Base",
    "User",
    "Holding",
    "Nudge",
    "PriceAlert",
    "OneTimeToken",
    "PortfolioDocument",
    "TradeTransaction",
    "BrokerageConnection",
]
