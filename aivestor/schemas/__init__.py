from aivestor.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from aivestor.schemas.brokerage import (
    ConnectRequest,
    ConnectionResponse,
    DisconnectRequest,
    PositionResponse,
    TradeRequest,
    TradeResponse,
    TransactionResponse,
)
from aivestor.schemas.feed import AlertCreate, AlertResponse, NudgeCreate, NudgeResponse
from aivestor.schemas.holding import HoldingCreate, HoldingResponse, HoldingUpdate
from aivestor.schemas.onboarding import OnboardingRequest, OnboardingResponse
from aivestor.schemas.prediction import PortfolioRecommendationRequest
from aivestor.schemas.user import UserCreate, UserResponse, UserUpdate
