"""Wire a chain with the sale, token, pool and router."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .amm.pool import SpaceCoinPool
from .amm.router import SpaceCoinRouter
from .config import SaleConfig
from .ledger.chain import Chain
from .ledger.token import SpaceCoinToken
from .logging_conf import LOGGER
from .sale.engine import SpaceCoinSale


@dataclass
class Deployment:
    chain: Chain
    sale: SpaceCoinSale
    token: SpaceCoinToken
    pool: SpaceCoinPool
    router: SpaceCoinRouter


def deploy(
    admin: str,
    treasury: str,
    whitelist: Iterable[str] = (),
    config: SaleConfig | None = None,
    chain: Chain | None = None,
) -> Deployment:
    chain = chain or Chain()
    sale = SpaceCoinSale(chain, admin=admin, treasury=treasury, whitelist=list(whitelist), config=config)
    pool = SpaceCoinPool(chain, sale.token)
    router = SpaceCoinRouter(chain, sale.token, pool)
    LOGGER.info("sale %s token %s pool %s router %s", sale.address, sale.token.address, pool.address, router.address)
    return Deployment(chain=chain, sale=sale, token=sale.token, pool=pool, router=router)
