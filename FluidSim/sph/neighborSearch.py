# -- Brute-Force Neighbor Search -- #

'''
All-pairs neighbor search for SPH.

Every particle is compared against every other particle and pairs
closer than the smoothing radius are recorded. The scan is
O(N^2); distance checks are vectorized with NumPy broadcasting over
blocks of rows.

Neighbors are stored as directed pairs (i -> j and j -> i both
present) sorted by the owning particle, so that each particle's
neighbor list is a contiguous slice of the pair arrays.
'''

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Protocol

import numpy as np


class NeighborRecord(NamedTuple):
    '''One neighbor of a particle.'''

    index: int
    distance: float
    direction: np.ndarray


#--------------------------------------------------------------------#
# -- Neighbor List -- #
#--------------------------------------------------------------------#

@dataclass
class NeighborList:
    '''
    Directed neighbor pairs for one simulation step.

    Entry k says particle selfIndices[k] has neighbor
    neighborIndices[k] at distances[k], with directions[k] the unit
    vector from the particle toward the neighbor.

    Parameters:
    -----------
    nParticles : int
        Number of particles the list was built for
    selfIndices : np.ndarray
        Owning particle index per pair, shape (P,)
    neighborIndices : np.ndarray
        Neighbor particle index per pair, shape (P,)
    distances : np.ndarray
        Pair distances, shape (P,)
    directions : np.ndarray
        Unit vectors self -> neighbor, shape (P, 3)
    '''

    nParticles: int
    selfIndices: np.ndarray
    neighborIndices: np.ndarray
    distances: np.ndarray
    directions: np.ndarray

    @property
    def nPairs(self) -> int:
        '''Number of directed pairs.'''
        return len(self.selfIndices)

    def counts(self) -> np.ndarray:
        '''Neighbor count per particle, shape (nParticles,).'''
        return np.bincount(self.selfIndices, minlength=self.nParticles)

    def neighborsOf(self, index: int) -> list[NeighborRecord]:
        '''
        Ordered neighbor records of one particle.

        Parameters:
        -----------
        index : int
            Particle index

        Returns:
        --------
        list[NeighborRecord] : Neighbors in ascending index order
        '''
        start, stop = np.searchsorted(self.selfIndices, [index, index + 1])
        return [
            NeighborRecord(
                int(self.neighborIndices[k]),
                float(self.distances[k]),
                self.directions[k],
            )
            for k in range(start, stop)
        ]


#--------------------------------------------------------------------#
# -- Neighbor Search Protocol -- #
#--------------------------------------------------------------------#

class NeighborSearch(Protocol):
    '''Protocol for neighbor search algorithms.'''

    def build(self, positions: np.ndarray, radius: float) -> NeighborList:
        '''
        Find all directed pairs closer than radius.

        Returns:
        --------
        NeighborList : Pairs sorted by owning particle
        '''
        ...


#--------------------------------------------------------------------#
# -- Brute-Force Search -- #
#--------------------------------------------------------------------#

class BruteForceNeighborSearch:
    '''
    O(N^2) all-pairs neighbor search.

    A pair (i, j), i != j, is recorded when |x_j - x_i| < radius.
    A pair at exactly the radius is excluded. Coincident particles
    are neighbors with a zero direction vector.

    Parameters:
    -----------
    blockSize : int
        Rows compared per broadcast block
    '''

    def __init__(self, blockSize: int = 512) -> None:
        self._blockSize = max(1, int(blockSize))

    def build(self, positions: np.ndarray, radius: float) -> NeighborList:
        '''
        Scan all particle pairs and record those within radius.

        Parameters:
        -----------
        positions : np.ndarray
            Particle positions, shape (N, 3)
        radius : float
            Search radius h [m]

        Returns:
        --------
        NeighborList : Directed neighbor pairs
        '''
        nParticles = positions.shape[0]
        iChunks: list[np.ndarray] = []
        jChunks: list[np.ndarray] = []
        distChunks: list[np.ndarray] = []
        dirChunks: list[np.ndarray] = []

        for start in range(0, nParticles, self._blockSize):
            stop = min(start + self._blockSize, nParticles)
            blockPos = positions[start:stop]

            # Offsets from each block particle to every particle
            diff = positions[np.newaxis, :, :] - blockPos[:, np.newaxis, :]  # (b, N, 3)
            dist = np.sqrt(np.sum(diff * diff, axis=2))  # (b, N)

            withinRadius = dist < radius
            # Exclude self-pairs
            localRows = np.arange(stop - start)
            withinRadius[localRows, localRows + start] = False

            # np.nonzero walks row-major: by self index, then neighbor index
            localI, globalJ = np.nonzero(withinRadius)
            if len(localI) == 0:
                continue

            pairDist = dist[localI, globalJ]
            pairDiff = diff[localI, globalJ]
            safeDist = np.where(pairDist > 0.0, pairDist, 1.0)
            pairDir = np.where(
                (pairDist > 0.0)[:, np.newaxis],
                pairDiff / safeDist[:, np.newaxis],
                0.0,
            )

            iChunks.append(localI + start)
            jChunks.append(globalJ)
            distChunks.append(pairDist)
            dirChunks.append(pairDir)

        if not iChunks:
            return NeighborList(
                nParticles=nParticles,
                selfIndices=np.array([], dtype=np.intp),
                neighborIndices=np.array([], dtype=np.intp),
                distances=np.array([], dtype=float),
                directions=np.zeros((0, 3)),
            )

        return NeighborList(
            nParticles=nParticles,
            selfIndices=np.concatenate(iChunks).astype(np.intp),
            neighborIndices=np.concatenate(jChunks).astype(np.intp),
            distances=np.concatenate(distChunks),
            directions=np.concatenate(dirChunks),
        )
