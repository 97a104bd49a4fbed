import logging
import re

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.dependencies import get_session, require_user_phone
from backend.auth.passwords import hash_password, verify_password
from backend.core import config
from backend.database import get_db
from backend.models.admin_user import AdminUser
from backend.models.subscription import Subscription
from backend.models.user_account import UserAccount
from backend.schemas import AdminUserResponse, CamelModel, SubscriptionResponse, UserAccountResponse

router = APIRouter(tags=['auth'])
logger = logging.getLogger(__name__)

USER_PHONE_PATTERN = re.compile(r'^(\+\d{1,4}\d{7,15}|[6-9]\d{9})$')
ADMIN_MOBILE_PATTERN = re.compile(r'^\+\d{10,15}$')
MIN_PASSWORD_LENGTH = 8
PASSWORD_SPECIAL_CHARACTERS = re.compile(r'[!@#$%^&*(),.?":{}|<>]')


class UserLoginRequest(BaseModel):
    phone: str
    password: str

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str) -> str:
        normalized = value.strip()
        if not USER_PHONE_PATTERN.match(normalized):
            raise ValueError('Please enter a valid mobile number')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required')
        return value


class UserRegistrationRequest(CamelModel):
    phone: str
    password: str
    confirm_password: str
    subscription_id: int

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str) -> str:
        normalized = value.strip()
        if not USER_PHONE_PATTERN.match(normalized):
            raise ValueError('Please enter a valid mobile number')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        if not re.search(r'[A-Z]', value):
            raise ValueError('Password must contain at least one capital letter')
        if not re.search(r'[0-9]', value):
            raise ValueError('Password must contain at least one number')
        if not PASSWORD_SPECIAL_CHARACTERS.search(value):
            raise ValueError('Password must contain at least one special character')
        return value

    @model_validator(mode='after')
    def validate_passwords_match(self) -> 'UserRegistrationRequest':
        if self.password != self.confirm_password:
            raise ValueError('Passwords do not match')
        return self


class AdminLoginRequest(BaseModel):
    mobile: str
    password: str

    @field_validator('mobile')
    @classmethod
    def validate_mobile(cls, value: str) -> str:
        normalized = value.strip()
        if not ADMIN_MOBILE_PATTERN.match(normalized):
            raise ValueError('Please enter a valid mobile number')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError('Password is required')
        return value


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        max_age=config.SESSION_EXPIRES_MINUTES * 60,
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite='lax',
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=config.SESSION_COOKIE_NAME)


@router.post('/user-account/register')
def user_register(data: UserRegistrationRequest, response: Response, db: Session = Depends(get_db)):
    if db.get(UserAccount, data.phone) is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Account already exists for this phone number',
        )

    subscription = db.get(Subscription, data.subscription_id)
    if subscription is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid subscription')

    if subscription.mobile_number != data.phone:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Phone number does not match subscription',
        )

    account = UserAccount(
        phone=data.phone,
        password=hash_password(data.password),
        full_name=subscription.full_name,
        subscription_id=subscription.id,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Account already exists for this phone number',
        ) from exc
    db.refresh(account)

    set_session_cookie(response, jwt_handler.create_user_session(account.phone))
    logger.info('Registered account %s for subscription %s', account.phone, subscription.id)
    return {
        'message': 'Your account has been created successfully. You can now log in using your phone number and password.',
        'account': UserAccountResponse.model_validate(account),
    }


@router.post('/user-account/login')
def user_login(data: UserLoginRequest, response: Response, db: Session = Depends(get_db)):
    account = db.query(UserAccount).filter(UserAccount.phone == data.phone).first()
    if account is None or not verify_password(data.password, account.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Invalid user ID or password.',
        )

    set_session_cookie(response, jwt_handler.create_user_session(account.phone))
    logger.info('User %s logged in', account.phone)
    return {'account': UserAccountResponse.model_validate(account)}


@router.post('/user-account/logout')
def user_logout(response: Response):
    clear_session_cookie(response)
    return {'message': 'Logged out successfully'}


@router.get('/user-account/session')
def user_session(session: dict = Depends(get_session), db: Session = Depends(get_db)):
    phone = session.get(jwt_handler.USER_PHONE_CLAIM)
    if not phone:
        return {'account': None}

    account = db.query(UserAccount).filter(UserAccount.phone == phone).first()
    if account is None:
        return {'account': None}

    return {'account': UserAccountResponse.model_validate(account)}


@router.get('/user-account/subscription')
def user_subscription(user_phone: str = Depends(require_user_phone), db: Session = Depends(get_db)):
    account = db.query(UserAccount).filter(UserAccount.phone == user_phone).first()
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Account not found')

    if account.subscription_id is None:
        return {'subscription': None}

    subscription = db.get(Subscription, account.subscription_id)
    if subscription is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Subscription not found')

    if subscription.mobile_number != user_phone:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Access denied')

    return {'subscription': SubscriptionResponse.model_validate(subscription)}


@router.post('/admin/login')
def admin_login(data: AdminLoginRequest, response: Response, db: Session = Depends(get_db)):
    admin = db.query(AdminUser).filter(AdminUser.mobile == data.mobile).first()
    if admin is None or not verify_password(data.password, admin.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Invalid credentials',
        )

    set_session_cookie(response, jwt_handler.create_admin_session(admin.id))
    logger.info('Admin %s logged in', admin.id)
    return {'admin': AdminUserResponse.model_validate(admin)}


@router.post('/admin/logout')
def admin_logout(response: Response):
    clear_session_cookie(response)
    return {'message': 'Logged out successfully'}


@router.get('/admin/session')
def admin_session(session: dict = Depends(get_session), db: Session = Depends(get_db)):
    admin_id = session.get(jwt_handler.ADMIN_ID_CLAIM)
    if admin_id is None:
        return {'admin': None}

    admin = db.get(AdminUser, int(admin_id))
    if admin is None:
        return {'admin': None}

    return {'admin': AdminUserResponse.model_validate(admin)}
