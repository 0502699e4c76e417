#graph_utils.py
#Builds the random contact graph shared by every trial of a model run

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union, Any
import warnings
import logging
import os
import numpy as np
import pandas as pd
import igraph as ig
import networkx as nx
from scipy.sparse import csr_matrix

logger = logging.getLogger(__name__)

#draws allowed per individual before construction is abandoned
_MIN_DRAW_CAP = 1000
_DRAWS_PER_NEIGHBOR = 100


@dataclass
class ContactGraph:
    """
    Contact structure that is static for a given model run.

    Neighborhoods are stored in CSR form: the neighbors of individual i are
    indices[indptr[i]:indptr[i+1]], in the order they were added. Both arrays are
    read-only once the graph is built. An edge added twice appears twice.
    """
    N: int
    target_size: int
    indptr: np.ndarray
    indices: np.ndarray
    edge_list: pd.DataFrame

    def neighbors(self, ind: int) -> np.ndarray:
        return self.indices[self.indptr[ind]:self.indptr[ind + 1]]

    def degree(self, ind: Optional[int] = None) -> Union[int, np.ndarray]:
        """Neighbor count for one individual, or the array for all of them"""
        counts = np.diff(self.indptr)
        if ind is None:
            return counts
        return int(counts[ind])

    def random_neighbor(self, ind: int, rng: np.random.Generator) -> int:
        return int(self.random_neighbors(ind, 1, rng)[0])

    def random_neighbors(self, ind: int, n: int, rng: np.random.Generator) -> np.ndarray:
        """
        Draw n neighbors of ind uniformly by position in its neighbor list (with replacement)
        """
        start = self.indptr[ind]
        end = self.indptr[ind + 1]
        if end <= start:
            raise ValueError(f"Individual {ind} has no neighbors to sample from")
        if n <= 0:
            return np.empty(0, dtype = self.indices.dtype)
        return self.indices[start + rng.integers(0, end - start, size = n)]

    def adjacency_matrix(self) -> csr_matrix:
        """
        Symmetric adjacency matrix; entries count repeated edges
        """
        src = self.edge_list["source"].to_numpy(dtype = np.int32)
        tgt = self.edge_list["target"].to_numpy(dtype = np.int32)
        weights = np.ones(src.shape[0], dtype = np.int32)

        row = np.concatenate([src, tgt])
        col = np.concatenate([tgt, src])
        dat = np.concatenate([weights, weights])
        return csr_matrix((dat, (row, col)), shape = (self.N, self.N))

    def is_reciprocal(self) -> bool:
        """True when every stored neighbor entry A->B is mirrored by B->A (with multiplicity)"""
        rows = np.repeat(np.arange(self.N, dtype = np.int32), self.degree())
        ones = np.ones(self.indices.shape[0], dtype = np.int32)
        directed = csr_matrix((ones, (rows, self.indices)), shape = (self.N, self.N))
        return (directed != directed.T).nnz == 0

    def has_self_loops(self) -> bool:
        rows = np.repeat(np.arange(self.N), self.degree())
        return bool(np.any(rows == self.indices))

    def duplicate_edge_count(self) -> int:
        """Number of edges that repeat an already existing (source, target) pair"""
        if self.edge_list.empty:
            return 0
        pairs = pd.DataFrame({
            "a": np.minimum(self.edge_list["source"], self.edge_list["target"]),
            "b": np.maximum(self.edge_list["source"], self.edge_list["target"]),
        })
        return int(pairs.duplicated().sum())

    def to_igraph(self) -> ig.Graph:
        g = ig.Graph()
        g.add_vertices(self.N)
        g.vs["name"] = list(range(self.N))
        edges = list(zip(self.edge_list["source"].tolist(), self.edge_list["target"].tolist()))
        if edges:
            g.add_edges(edges)
        return g

    def to_networkx(self) -> nx.Graph:
        """
        Collapse repeated edges into a single networkX edge with a 'multiplicity' attribute
        """
        G = nx.Graph()
        G.add_nodes_from(range(self.N))
        for src, tgt in zip(self.edge_list["source"].tolist(), self.edge_list["target"].tolist()):
            if G.has_edge(src, tgt):
                G[src][tgt]["multiplicity"] += 1
            else:
                G.add_edge(src, tgt, multiplicity = 1)
        return G

    def write_graphml(self, path: str) -> str:
        """Save the graph as .graphml to open externally (e.g. gephi)"""
        if not path.endswith(".graphml"):
            path = path + ".graphml"
        parent = os.path.dirname(os.path.abspath(path))
        os.makedirs(parent, exist_ok = True)
        nx.write_graphml(self.to_networkx(), path)
        return path

    def summary(self, with_diameter: bool = True) -> Dict[str, Any]:
        """
        Degree statistics, duplicate edges and (optionally) the diameter of the graph
        """
        degrees = self.degree()
        out: Dict[str, Any] = {
            "N": int(self.N),
            "target_size": int(self.target_size),
            "n_edges": int(self.edge_list.shape[0]),
            "min_degree": int(degrees.min()) if degrees.size else 0,
            "mean_degree": float(degrees.mean()) if degrees.size else 0.0,
            "max_degree": int(degrees.max()) if degrees.size else 0,
            "duplicate_edges": self.duplicate_edge_count(),
        }
        if with_diameter:
            g = self.to_igraph()
            out["connected"] = bool(g.is_connected()) if self.N > 0 else False
            out["diameter"] = int(g.diameter(directed = False)) if self.N > 0 else 0
        return out


def build_contact_graph(
    population: Union[int, Sequence[Any]],
    max_neighbors: int,
    rng: Optional[np.random.Generator] = None,
    max_draws: Optional[int] = None,
) -> ContactGraph:
    """
    Build a random contact graph where every individual has at least max_neighbors neighbors.

    Individuals are visited in order. While the current individual (the root) has fewer
    than max_neighbors neighbors, a uniformly random individual is drawn from the whole
    population; it is rejected only if it is the root itself. Each accepted candidate is
    linked both ways, and the reverse link ignores the candidate's own target size, so
    neighbor counts can exceed max_neighbors. Repeated draws of the same candidate are
    kept as repeated edges.

    Args:
        population (int | Sequence): population size or the population itself (positions are ids)
        max_neighbors (int): target neighborhood size, >= 1
        rng (np.random.Generator, optional): RNG object, created if not provided
        max_draws (int, optional): draws allowed per root before giving up

    Returns:
        ContactGraph: the finished, read-only graph
    """
    N = int(population) if isinstance(population, (int, np.integer)) else len(population)
    max_neighbors = int(max_neighbors)
    if max_neighbors <= 0:
        raise ValueError(f"max_neighbors must be >= 1 (got {max_neighbors})")
    if N < 0:
        raise ValueError("population size cannot be negative")
    if rng is None:
        rng = np.random.default_rng()
    if max_draws is None:
        max_draws = max(_MIN_DRAW_CAP, _DRAWS_PER_NEIGHBOR * max_neighbors)

    if max_neighbors >= N:
        warnings.warn(
            f"Neighborhood size {max_neighbors} >= population {N}; neighborhoods will contain repeated contacts"
        )

    neighbor_lists: List[List[int]] = [[] for _ in range(N)]
    sources: List[int] = []
    targets: List[int] = []
    rejected = 0

    for root in range(N):
        nbrs = neighbor_lists[root]
        draws = 0
        while len(nbrs) < max_neighbors:
            if draws >= max_draws:
                raise RuntimeError(
                    f"Could not fill neighborhood of individual {root} after {draws} draws "
                    f"({len(nbrs)}/{max_neighbors} neighbors)"
                )
            #draw as many candidates as are still missing and accept them in order
            needed = max_neighbors - len(nbrs)
            candidates = rng.integers(0, N, size = needed)
            draws += needed
            for cand in candidates.tolist():
                if cand == root:
                    rejected += 1
                    continue
                nbrs.append(cand)
                neighbor_lists[cand].append(root)
                sources.append(root)
                targets.append(cand)

    #finalize into read-only CSR arrays
    counts = np.fromiter((len(n) for n in neighbor_lists), dtype = np.int64, count = N)
    indptr = np.zeros(N + 1, dtype = np.int64)
    np.cumsum(counts, out = indptr[1:])
    if N and indptr[-1] > 0:
        indices = np.fromiter((n for nbrs in neighbor_lists for n in nbrs), dtype = np.int32, count = int(indptr[-1]))
    else:
        indices = np.empty(0, dtype = np.int32)
    indptr.flags.writeable = False
    indices.flags.writeable = False

    edge_list = pd.DataFrame({
        "source": np.asarray(sources, dtype = np.int32),
        "target": np.asarray(targets, dtype = np.int32),
    })

    graph = ContactGraph(
        N = N,
        target_size = max_neighbors,
        indptr = indptr,
        indices = indices,
        edge_list = edge_list,
    )
    logger.debug("Rejected %d self draws while building contact graph", rejected)
    if N:
        logger.info(
            "Built contact graph: %d individuals, %d edges, degree %d-%d (target %d)",
            N, edge_list.shape[0], int(counts.min()), int(counts.max()), max_neighbors
        )
    return graph
