import numpy as np


def replicate_rng(random_seed: int, replicate_index: int) -> np.random.Generator:
    """Random generator of one replicate.

    The stream only depends on ``(random_seed, replicate_index)`` so that a replicate draws the same
    sample whatever the order in which replicates are executed.

    Args:
        random_seed (int): the seed of the whole ensemble run.
        replicate_index (int): the number of the replicate, from ``1``.

    Returns:
        np.random.Generator: the generator of the replicate.
    """
    seed_sequence = np.random.SeedSequence(entropy=random_seed, spawn_key=(replicate_index,))
    return np.random.default_rng(seed_sequence)


def bootstrap_indices(n: int, random_seed: int, replicate_index: int) -> np.ndarray:
    """Draws ``n`` row indices uniformly with replacement from ``{0, ..., n-1}``.

    Args:
        n (int): the number of rows of the training set.
        random_seed (int): the seed of the whole ensemble run.
        replicate_index (int): the number of the replicate, from ``1``.

    Returns:
        np.ndarray: integer array of shape ``(n,)``.
    """
    rng = replicate_rng(random_seed, replicate_index)
    return rng.integers(0, n, size=n)


def out_of_bag_mask(indices: np.ndarray, n: int) -> np.ndarray:
    """Boolean mask of the rows of ``{0, ..., n-1}`` that are absent from ``indices``."""
    mask = np.ones(n, dtype=bool)
    mask[indices] = False
    return mask


def new_random_seed() -> int:
    """Draws fresh entropy from the operating system to seed a run."""
    return int(np.random.SeedSequence().entropy)
