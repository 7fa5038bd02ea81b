from __future__ import annotations

import hashlib
import json
import logging
import random
import secrets
from dataclasses import dataclass
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

Seed = Union[int, str, bytes, None]


def _stable_payload(value: Any) -> bytes:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


@dataclass(frozen=True)
class RNGManager:
    """Derives independent random streams from one master seed.

    Each stream is keyed by a domain name plus identifiers, so the floor
    layout for level 3 does not depend on how many items were spawned on
    level 2:

        rngm = RNGManager(1234)
        layout_rng = rngm.context_rng("floor_layout", level, generation)
        item_rng = rngm.context_rng("items", level, generation)
    """

    master_seed: Seed = None

    def __post_init__(self) -> None:
        if self.master_seed is None:
            raw = secrets.token_bytes(16)
            logger.info("No master seed provided; generated random seed: %s", raw.hex())
        else:
            raw = self._canonicalize(self.master_seed)
            logger.debug("Using master seed: %r", self.master_seed)
        object.__setattr__(self, "_seed_bytes", raw)

    @staticmethod
    def _canonicalize(seed: Union[int, str, bytes]) -> bytes:
        if isinstance(seed, bytes):
            return seed
        if isinstance(seed, bool):
            raise TypeError("Boolean is not a valid seed")
        if isinstance(seed, int):
            length = (seed.bit_length() + 7) // 8 or 1
            return seed.to_bytes(length, "big", signed=seed < 0)
        if isinstance(seed, str):
            return seed.strip().encode("utf-8")
        raise TypeError("Unsupported seed type: %r" % (type(seed),))

    def derive_seed(self, domain: str, *identifiers: Any) -> int:
        """64-bit seed for ``domain`` and ``identifiers`` (BLAKE2b over a stable payload)."""
        payload = {"domain": domain, "ids": identifiers, "master": self._seed_bytes.hex()}
        digest = hashlib.blake2b(_stable_payload(payload), digest_size=8).digest()
        seed = int.from_bytes(digest, "big", signed=False)
        logger.debug("Derived seed for domain=%s ids=%s -> %d", domain, identifiers, seed)
        return seed

    def context_rng(self, domain: str, *identifiers: Any) -> random.Random:
        return random.Random(self.derive_seed(domain, *identifiers))

    @property
    def seed_hex(self) -> str:
        return self._seed_bytes.hex()


def coerce_seed(value: Optional[str]) -> Seed:
    """Interpret a CLI seed: integers stay integers, anything else is a string seed."""
    if value is None:
        return None
    try:
        return int(value, 0)
    except ValueError:
        return value
