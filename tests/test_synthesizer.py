"""Tests for faq_cluster.synthesizer module."""

import numpy as np
import pytest

from services.faq_cluster.synthesizer import (
    DEFAULT_CATEGORY,
    NO_ANSWER,
    ClusterMember,
    ClusterSynthesizer,
    answer_score,
    confidence_score,
    question_score,
    size_score,
)
from shared.schemas.inquiry import InquiryResponse

from conftest import make_inquiry


def _members(*pairs):
    """(inquiry, vector) pairs in input order"""
    return [
        ClusterMember(index=i, inquiry=inquiry, vector=np.asarray(vector, dtype=float))
        for i, (inquiry, vector) in enumerate(pairs)
    ]


class TestScores:
    def test_question_score_prefers_clear_questions(self) -> None:
        assert question_score("ログインできません") == 0
        assert question_score("パスワードを再設定するにはどうすればいいですか？") == 20
        assert question_score("How do I reset my password?") == 20

    def test_answer_score_prefers_structured_answers(self) -> None:
        short = InquiryResponse(content="再起動してください")
        structured = InquiryResponse(content="以下の手順をお試しください。\n・設定を開く\n・アカウントを選択\n・パスワードを変更する\n・再ログインする\n・完了後にもう一度お試しください")
        assert answer_score(short) == 0
        assert answer_score(structured) == 13

    @pytest.mark.parametrize("content", ["手順:\n-設定を開く", "手順:\n- 設定を開く", "1.設定を開く"])
    def test_any_list_marker_counts(self, content: str) -> None:
        assert answer_score(InquiryResponse(content=content)) == 3

    def test_size_score_has_diminishing_returns(self) -> None:
        assert size_score(0) == 0.0
        assert 0 < size_score(2) < size_score(5) < size_score(10) == 1.0
        assert size_score(50) == 1.0
        assert size_score(3) - size_score(2) > size_score(9) - size_score(8)

    @pytest.mark.parametrize("size,homogeneity,coverage", [
        (1, 0.0, 0.0), (2, 0.5, 0.0), (5, 1.0, 1.0), (100, 1.0, 1.0),
    ])
    def test_confidence_stays_in_unit_interval(self, size, homogeneity, coverage) -> None:
        assert 0.0 < confidence_score(size, homogeneity, coverage) <= 1.0


class TestClusterSynthesizer:
    def test_representative_is_closest_to_centroid(self) -> None:
        members = _members(
            (make_inquiry("a", "端の質問"), [1.0, 0.0]),
            (make_inquiry("b", "中心の質問"), [0.7, 0.7]),
            (make_inquiry("c", "反対側の質問"), [0.0, 1.0]),
        )

        cluster = ClusterSynthesizer().synthesize("cluster-0", members)

        assert cluster.representative_question == "中心の質問"
        assert cluster.representative_inquiry_id == "b"
        assert cluster.inquiry_ids == ["a", "b", "c"]

    def test_ties_prefer_question_like_titles(self) -> None:
        members = _members(
            (make_inquiry("a", "ログイン"), [1.0, 0.0]),
            (make_inquiry("b", "ログインできないのはなぜですか？"), [1.0, 0.0]),
        )

        cluster = ClusterSynthesizer().synthesize("cluster-0", members)

        assert cluster.representative_question == "ログインできないのはなぜですか？"

    def test_blank_titles_fall_back_to_content(self) -> None:
        members = _members(
            (make_inquiry("a", "  ", content="アプリが落ちます"), [1.0, 0.0]),
            (make_inquiry("b", "", content="起動しません"), [1.0, 0.0]),
        )

        cluster = ClusterSynthesizer().synthesize("cluster-0", members)

        assert cluster.representative_question == "アプリが落ちます"

    def test_category_majority_with_first_seen_tie_break(self) -> None:
        members = _members(
            (make_inquiry("a", "q1", category="技術的問題"), [1.0, 0.0]),
            (make_inquiry("b", "q2", category="アカウント"), [1.0, 0.0]),
            (make_inquiry("c", "q3", category="アカウント"), [1.0, 0.0]),
            (make_inquiry("d", "q4", category="技術的問題"), [1.0, 0.0]),
            (make_inquiry("e", "q5"), [1.0, 0.0]),
        )

        cluster = ClusterSynthesizer().synthesize("cluster-0", members)

        assert cluster.category == "技術的問題"

    def test_missing_categories_use_default(self) -> None:
        members = _members(
            (make_inquiry("a", "q1"), [1.0, 0.0]),
            (make_inquiry("b", "q2"), [1.0, 0.0]),
        )

        cluster = ClusterSynthesizer().synthesize("cluster-0", members)

        assert cluster.category == DEFAULT_CATEGORY

    def test_answer_comes_from_most_central_member_with_public_response(self) -> None:
        members = _members(
            (make_inquiry("a", "端", answers=["端の回答"]), [1.0, 0.1]),
            (make_inquiry("b", "中心", private_answers=["社内メモ"]), [1.0, 0.45]),
            (make_inquiry("c", "中心寄り", answers=["中心寄りの回答"]), [1.0, 0.5]),
            (make_inquiry("d", "反対の端", answers=["反対の回答"]), [1.0, 0.9]),
        )

        cluster = ClusterSynthesizer().synthesize("cluster-0", members)

        assert cluster.representative_inquiry_id == "b"
        assert cluster.suggested_answer == "中心寄りの回答"

    def test_no_public_response_gives_empty_answer(self) -> None:
        members = _members(
            (make_inquiry("a", "q1", private_answers=["内部向けの回答"]), [1.0, 0.0]),
            (make_inquiry("b", "q2", answers=["   "]), [1.0, 0.0]),
        )

        cluster = ClusterSynthesizer().synthesize("cluster-0", members)

        assert cluster.suggested_answer == NO_ANSWER == ""
        assert "内部向け" not in cluster.suggested_answer

    def test_best_scoring_public_response_wins(self) -> None:
        long_answer = "パスワードリセット機能をご利用ください。ログイン画面の「パスワードを忘れた方」をクリックし、登録済みのメールアドレスを入力してください。"
        inquiry = make_inquiry("a", "q1", answers=["確認します", long_answer])
        members = _members((inquiry, [1.0, 0.0]), (make_inquiry("b", "q2"), [1.0, 0.0]))

        cluster = ClusterSynthesizer().synthesize("cluster-0", members)

        assert cluster.suggested_answer == long_answer

    def test_confidence_reflects_homogeneity_and_coverage(self) -> None:
        uniform = _members(*[
            (make_inquiry(f"u{i}", f"質問{i}", category="アカウント", answers=[f"回答{i}"]), [1.0, 0.0])
            for i in range(5)
        ])
        mixed = _members(
            (make_inquiry("m1", "q1", category="アカウント"), [1.0, 0.0]),
            (make_inquiry("m2", "q2", category="技術的問題"), [1.0, 0.0]),
        )

        high = ClusterSynthesizer().synthesize("cluster-0", uniform).confidence
        low = ClusterSynthesizer().synthesize("cluster-1", mixed).confidence

        assert high > 0.5
        assert 0.0 < low < high

    def test_similarity_is_mean_member_to_centroid_cosine(self) -> None:
        members = _members(
            (make_inquiry("a", "q1"), [1.0, 0.0]),
            (make_inquiry("b", "q2"), [1.0, 0.0]),
        )

        cluster = ClusterSynthesizer().synthesize("cluster-0", members)

        assert cluster.similarity == pytest.approx(1.0)

    def test_empty_cluster_rejected(self) -> None:
        with pytest.raises(ValueError):
            ClusterSynthesizer().synthesize("cluster-0", [])
