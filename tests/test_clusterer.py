"""Tests for faq_cluster.clusterer module."""

import numpy as np
import pytest

from services.faq_cluster.clusterer import (
    CentroidLinkage,
    CompleteLinkage,
    SimilarityClusterer,
    SingleLinkage,
    get_linkage,
)


def _unit(angle_degrees: float) -> list[float]:
    angle = np.radians(angle_degrees)
    return [float(np.cos(angle)), float(np.sin(angle))]


class TestLinkages:
    def test_centroid_joins_most_similar_group(self) -> None:
        vectors = np.array([_unit(0), _unit(90), _unit(80), _unit(5)])
        groups = CentroidLinkage().group(vectors, threshold=0.9)
        assert groups == [[0, 3], [1, 2]]

    def test_threshold_is_inclusive(self) -> None:
        # cos(60°) == 0.5 exactly up to floating point error
        vectors = np.array([_unit(0), _unit(60)])
        for linkage in (CentroidLinkage(), SingleLinkage(), CompleteLinkage()):
            assert linkage.group(vectors, threshold=0.5) == [[0, 1]]

    def test_single_linkage_chains(self) -> None:
        # 0-1 and 1-2 are similar, 0-2 is not
        vectors = np.array([_unit(0), _unit(20), _unit(40)])
        threshold = float(np.cos(np.radians(25)))
        assert SingleLinkage().group(vectors, threshold) == [[0, 1, 2]]

    def test_complete_linkage_does_not_chain(self) -> None:
        vectors = np.array([_unit(0), _unit(20), _unit(40)])
        threshold = float(np.cos(np.radians(25)))
        assert CompleteLinkage().group(vectors, threshold) == [[0, 1], [2]]

    def test_single_linkage_orders_groups_by_first_member(self) -> None:
        vectors = np.array([_unit(90), _unit(0), _unit(88), _unit(2)])
        assert SingleLinkage().group(vectors, threshold=0.99) == [[0, 2], [1, 3]]

    def test_zero_vector_is_never_similar(self) -> None:
        vectors = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 0.0]])
        groups = CentroidLinkage().group(vectors, threshold=0.5)
        assert groups == [[0], [1, 2]]

    def test_get_linkage_by_name(self) -> None:
        assert isinstance(get_linkage("single"), SingleLinkage)
        with pytest.raises(ValueError):
            get_linkage("ward")


class TestSimilarityClusterer:
    def test_empty_and_single_row_give_no_clusters(self) -> None:
        clusterer = SimilarityClusterer(similarity_threshold=0.1, min_cluster_size=1)
        assert clusterer.cluster(np.empty((0, 0))).clusters == []
        partition = clusterer.cluster(np.array([[1.0, 0.0]]))
        assert partition.clusters == []
        assert partition.unclustered_positions == [0]

    def test_prunes_and_caps(self) -> None:
        vectors = np.array([
            _unit(0), _unit(90), _unit(1), _unit(45), _unit(91), _unit(2), _unit(46),
        ])
        clusterer = SimilarityClusterer(similarity_threshold=0.99, min_cluster_size=2, max_clusters=2)

        partition = clusterer.cluster(vectors)

        assert [c.member_positions for c in partition.clusters] == [[0, 2, 5], [1, 4]]
        assert partition.unclustered_positions == [3, 6]
        assert partition.pruned_groups == 0
        assert partition.capped_groups == 1

    def test_centroid_is_mean_of_normalized_members(self) -> None:
        vectors = np.array([[2.0, 0.0], [0.0, 3.0]])
        clusterer = SimilarityClusterer(similarity_threshold=0.1, min_cluster_size=2, max_clusters=1)

        partition = clusterer.cluster(vectors)

        assert partition.clusters == []  # orthogonal rows never group
        clusterer = SimilarityClusterer(similarity_threshold=0.5, min_cluster_size=2, max_clusters=1)
        partition = clusterer.cluster(np.array([[2.0, 0.0], [3.0, 0.0]]))
        assert partition.clusters[0].centroid == pytest.approx([1.0, 0.0])
