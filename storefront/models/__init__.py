from storefront.models.user import User, Role
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.cart import Cart, CartItem
from storefront.models.order import Order, OrderStatus
from storefront.models.order_item import OrderItem
from storefront.models.address import Address

# add ALL models here
