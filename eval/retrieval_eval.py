import json
from pathlib import Path
from typing import List, Dict
import math
import matplotlib.pyplot as plt

from lexlocal.config import CONFIG
from lexlocal.keywords import KeywordExtractor
from lexlocal.retriever import CandidateRetriever
from lexlocal.store import LegalStore


def load_eval_queries(path: Path) -> List[Dict]:
    data = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            data.append(json.loads(line))
    return data


def reciprocal_rank(predicted: List[str], gold: List[str]) -> float:
    """
    1/rank of the first gold NUMAC, 0 if none. Ranks are 1-based.
    """
    gold_set = set(gold)
    for idx, numac in enumerate(predicted, start=1):
        if numac in gold_set:
            return 1.0 / idx
    return 0.0


def hit_at_k(predicted: List[str], gold: List[str], k: int) -> float:
    gold_set = set(gold)
    return 1.0 if any(numac in gold_set for numac in predicted[:k]) else 0.0


def ndcg_at_k(predicted: List[str], gold: List[str], k: int) -> float:
    """
    Binary relevance: gold = 1, anything else = 0.
    A law can show up twice (two of its articles); only the first counts.
    """
    gold_set = set(gold)
    seen = set()
    dcg = 0.0
    for i, numac in enumerate(predicted[:k], start=1):
        if numac in gold_set and numac not in seen:
            dcg += 1.0 / math.log2(i + 1.0)
        seen.add(numac)

    idcg = sum(1.0 / math.log2(i + 1.0) for i in range(1, min(len(gold_set), k) + 1))
    if idcg == 0.0:
        return 0.0
    return dcg / idcg


def evaluate_retrieval(eval_data: List[Dict], retriever: CandidateRetriever, extractor: KeywordExtractor):
    results = []
    first_correct_ranks = []  # for the histogram

    for ex in eval_data:
        question = ex["question"]
        language = ex.get("language", "nl")
        gold = ex["gold_numacs"]

        keywords = extractor.extract(question, language)
        candidates = retriever.retrieve(keywords, language)
        predicted = [c.numac for c in candidates]

        rank_found = None
        for idx, numac in enumerate(predicted, start=1):
            if numac in set(gold):
                rank_found = idx
                break
        first_correct_ranks.append(rank_found if rank_found is not None else 999)

        results.append({
            "question": question,
            "language": language,
            "keywords": keywords.important,
            "gold": gold,
            "predicted": predicted,
            "hit@1": hit_at_k(predicted, gold, 1),
            "hit@3": hit_at_k(predicted, gold, 3),
            "hit@5": hit_at_k(predicted, gold, 5),
            "reciprocal_rank": reciprocal_rank(predicted, gold),
            "ndcg@5": ndcg_at_k(predicted, gold, 5),
            "first_correct_rank": rank_found,
        })

    n = len(results)
    summary = {
        metric: (sum(r[metric] for r in results) / n if n else 0.0)
        for metric in ["hit@1", "hit@3", "hit@5", "reciprocal_rank", "ndcg@5"]
    }
    summary["mrr"] = summary.pop("reciprocal_rank")
    summary["num_examples"] = n
    summary["tier"] = retriever.select_index_kind().value

    return results, summary, first_correct_ranks


def plot_retrieval_summary(summary: Dict):
    metrics = ["hit@1", "hit@3", "hit@5", "mrr", "ndcg@5"]
    values = [summary[m] for m in metrics]

    plt.figure()
    plt.bar(metrics, values)
    plt.title(f"Statute retrieval ({summary['tier']} tier, higher is better)")
    plt.ylim(0, 1.05)
    for i, v in enumerate(values):
        plt.text(i, v + 0.01, f"{v:.2f}", ha="center", va="bottom", fontsize=9)
    plt.ylabel("Score")
    plt.show()


def plot_rank_hist(first_correct_ranks: List[int]):
    """
    1 means the right law came first, 999 means it never showed up.
    """
    plt.figure()
    plt.hist(first_correct_ranks, bins=[1, 2, 3, 4, 5, 6, 999], align="left", rwidth=0.8)
    plt.title("Rank of first correct law")
    plt.xlabel("Rank (999 = not found)")
    plt.ylabel("#queries")
    plt.show()


def main():
    eval_path = Path("eval/qa_eval.jsonl")
    eval_data = load_eval_queries(eval_path)

    retriever = CandidateRetriever(LegalStore(CONFIG.db_path), CONFIG)
    results, summary, first_correct_ranks = evaluate_retrieval(eval_data, retriever, KeywordExtractor())

    print("=== SUMMARY ===")
    for k, v in summary.items():
        print(f"{k}: {v}")

    print("\n=== PER-QUESTION ===")
    for r in results:
        print(json.dumps(r, ensure_ascii=False, indent=2))

    plot_retrieval_summary(summary)
    plot_rank_hist(first_correct_ranks)


if __name__ == "__main__":
    main()
