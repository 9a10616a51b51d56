"""电商工具服务。

同一组工具有两种暴露方式：
- 内嵌模式：ECommerceToolServer.tools() 返回 FunctionTool，直接交给函数调用中间件；
- MCP 模式：build_mcp_server() 用 FastMCP 通过 stdio 对外提供同名工具。
"""

from typing import Annotated, Any, Dict, List

from mcp.server.fastmcp import FastMCP

from workshop_core.tools.functions import FunctionTool, create_tool

from .cart import Cart


class ECommerceToolServer:
    def __init__(self, cart: Cart):
        self._cart = cart

    @property
    def cart(self) -> Cart:
        return self._cart

    def get_price(self, count: Annotated[int, "The number of pairs of socks to calculate price for"]) -> float:
        """Computes the price of socks, returning a value in dollars."""
        return self._cart.get_price(count)

    def add_socks_to_cart(self, num_pairs: Annotated[int, "The number of pairs to add"]) -> None:
        """Adds the specified number of pairs of socks to the cart."""
        self._cart.add_socks_to_cart(num_pairs)

    def get_cart_status(self) -> Dict[str, Any]:
        """Gets the current cart contents."""
        total = self._cart.num_pairs_of_socks
        return {
            "totalItems": total,
            "totalPrice": self._cart.get_price(total),
            "currency": "USD",
        }

    def tools(self) -> List[FunctionTool]:
        return [
            create_tool(self.get_price),
            create_tool(self.add_socks_to_cart),
            create_tool(self.get_cart_status),
        ]


def build_mcp_server(cart: Cart, name: str = "ecommerce") -> FastMCP:
    server = ECommerceToolServer(cart)
    mcp = FastMCP(name)
    # FastMCP 从函数签名与 docstring 生成工具 schema
    mcp.add_tool(server.get_price, name="get_price")
    mcp.add_tool(server.add_socks_to_cart, name="add_socks_to_cart")
    mcp.add_tool(server.get_cart_status, name="get_cart_status")
    return mcp
