"""World sampler adapters (in-memory, demo and minescript-backed)."""

from .live_minecraft import MinescriptUnavailableError, MinescriptWorldSampler
from .world_sampler import AIR_BLOCKS, DemoWorldSampler, InMemoryWorldSampler, WorldSampler

__all__ = [
    "AIR_BLOCKS",
    "DemoWorldSampler",
    "InMemoryWorldSampler",
    "MinescriptUnavailableError",
    "MinescriptWorldSampler",
    "WorldSampler",
]
