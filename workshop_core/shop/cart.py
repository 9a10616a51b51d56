from dataclasses import dataclass
from typing import Annotated

from workshop_core.domain.exceptions import CartError
from workshop_core.infrastructure.logging.logger import logger

PRICE_PER_PAIR = 15.99


@dataclass
class Cart:
    """购物车：只记录袜子的双数，数量始终 >= 0。"""

    num_pairs_of_socks: int = 0

    def add_socks_to_cart(self, num_pairs: int) -> None:
        """Adds the specified number of pairs of socks to the cart."""
        if self.num_pairs_of_socks + num_pairs < 0:
            raise CartError(
                code="NEGATIVE_QUANTITY",
                message="You cannot order less than 0 pairs of Socks",
                requested=num_pairs,
                current=self.num_pairs_of_socks,
            )
        self.num_pairs_of_socks += num_pairs
        logger.info(
            "cart.updated",
            extra={"extra": {"added": num_pairs, "total_pairs": self.num_pairs_of_socks}},
        )

    @staticmethod
    def get_price(count: Annotated[int, "The number of pairs of socks to calculate price for"]) -> float:
        """Computes the price of socks, returning a value in dollars."""
        return round(count * PRICE_PER_PAIR, 2)
