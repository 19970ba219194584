from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.access import get_token_service, require
from storefront.errors import InvalidToken, UserNotFound
from storefront.models.user import User
from storefront.schemas.user_schemas import GoogleTokenRequest, Token, UserLogin, UserOut, UserRegister
from storefront.services import identity_service
from storefront.utils.google_auth import verify_google_token
from storefront.utils.token import TokenClaims, TokenService, TrustTier


router = APIRouter()


# -------- AUTH ROUTES --------

@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register_user(
    payload: UserRegister,
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
):
    user, token = identity_service.register(
        session, tokens, payload.name, payload.email, payload.password
    )
    return Token(access_token=token, user=UserOut.model_validate(user))


@router.post("/login", response_model=Token)
def login(
    payload: UserLogin,
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
):
    user = identity_service.resolve_local(session, payload.email, payload.password)
    token = tokens.issue(user, TrustTier.PASSWORD)
    return Token(access_token=token, user=UserOut.model_validate(user))


@router.post("/google", response_model=Token)
def google_login(
    request: GoogleTokenRequest,
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
):
    assertion = verify_google_token(request.token)
    if not assertion:
        raise InvalidToken("Invalid Google token")

    user = identity_service.resolve_federated(session, assertion)
    token = tokens.issue(user, TrustTier.FEDERATED)
    return Token(access_token=token, user=UserOut.model_validate(user))


@router.get("/verify")
def verify(claims: TokenClaims = Depends(require("auth:verify"))):
    return {"user": claims}


@router.get("/user", response_model=UserOut)
def current_user(
    claims: TokenClaims = Depends(require("auth:user")),
    session: Session = Depends(get_session),
):
    user = session.get(User, claims.id)
    if user is None:
        raise UserNotFound()
    return UserOut.model_validate(user)


@router.get("/logout")
def logout():
    # tokens are stateless; the client just drops its copy
    return {"message": "Logout successful"}
