from workshop_core.shop.cart import PRICE_PER_PAIR, Cart
from workshop_core.shop.server import ECommerceToolServer, build_mcp_server

__all__ = ["PRICE_PER_PAIR", "Cart", "ECommerceToolServer", "build_mcp_server"]
