"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication request/response schemas: registration, login, token
issuance/refresh and the current-user payload.
"""

from pydantic import BaseModel, EmailStr, Field

from app.utils.password import PASSWORD_MIN_LENGTH


class LoginRequest(BaseModel):
    """로그인 요청 스키마.

    Attributes:
        login: 사용자명 또는 이메일 (Username or email, case-insensitive)
        password: 비밀번호 (Plain text, verified against bcrypt hash)
    """

    login: str
    password: str


class RegisterRequest(BaseModel):
    """회원가입 요청 스키마.

    Attributes:
        username: 사용자명 — 서버에서 형식 검증 후 소문자로 저장
        email: 이메일 주소
        password: 비밀번호 (최소 8자)
        display_name: 표시 이름 (선택)
    """

    username: str
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=128)
    display_name: str | None = Field(default=None, max_length=100)


class TokenResponse(BaseModel):
    """JWT 토큰 발급 응답 스키마."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class MeResponse(BaseModel):
    """현재 사용자 정보 응답 스키마 (GET /auth/me)."""

    id: str
    username: str
    email: str
    display_name: str | None = None
    avatar_url: str | None = None
    role: int
    role_name: str
    lock_status: str
    can_access_admin: bool
