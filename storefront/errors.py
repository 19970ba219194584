"""
Typed errors raised by the services and the access gate.

Every error carries the HTTP status it maps to; ``storefront.main`` turns them
into ``{"detail": ...}`` responses. Messages must never contain passwords or
tokens.
"""


class AppError(Exception):
    status_code = 500
    detail = "Internal server error"
    headers = None

    def __init__(self, detail=None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


# -------- 400 --------

class ValidationError(AppError):
    status_code = 400
    detail = "Invalid request"


class IncompleteAssertion(ValidationError):
    detail = "Identity provider did not return an email"


class InvalidQuantity(ValidationError):
    detail = "Quantity must be a positive integer"


class EmptyOrder(ValidationError):
    detail = "At least one item is required to create an order"


class InvalidStatus(ValidationError):
    detail = "Invalid order status"


class InvalidStatusTransition(ValidationError):
    detail = "Order status transition not allowed"


# -------- 401 --------

class AuthenticationError(AppError):
    status_code = 401
    detail = "Could not validate credentials"
    headers = {"WWW-Authenticate": "Bearer"}


class MissingToken(AuthenticationError):
    detail = "Token not provided"


class InvalidToken(AuthenticationError):
    detail = "Invalid or expired token"


class TokenError(AuthenticationError):
    pass


class TokenExpired(TokenError):
    detail = "Token has expired"


class TokenMalformed(TokenError):
    detail = "Token is malformed or its signature is invalid"


class InvalidCredentials(AuthenticationError):
    detail = "Invalid email or password"


class FederatedOnly(AuthenticationError):
    detail = "This account uses Google Sign-In"


# -------- 403 --------

class AuthorizationError(AppError):
    status_code = 403
    detail = "Access denied"


class Forbidden(AuthorizationError):
    detail = "Your role is not allowed to perform this action"


# -------- 404 --------

class NotFoundError(AppError):
    status_code = 404
    detail = "Not found"


class UserNotFound(NotFoundError):
    detail = "User not found"


class ProductNotFound(NotFoundError):
    detail = "Product not found"


class CategoryNotFound(NotFoundError):
    detail = "Category not found"


class CartItemNotFound(NotFoundError):
    detail = "Cart item not found"


class OrderNotFound(NotFoundError):
    detail = "Order not found"


class AddressNotFound(NotFoundError):
    detail = "Address not found"


# -------- 409 --------

class ConflictError(AppError):
    status_code = 409
    detail = "Resource already exists"


class EmailTaken(ConflictError):
    detail = "Email already registered"


# -------- 500 --------

class DependencyError(AppError):
    status_code = 500
    detail = "Upstream dependency failed"
