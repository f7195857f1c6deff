import json
import re
from pathlib import Path
from typing import List, Dict

from lexlocal.config import CONFIG
from lexlocal.pipeline import LegalAssistant
from lexlocal.prompts import NOT_FOUND, REFUSALS
from lexlocal.schemas import ErrorResponse, Source

NUMAC_RE = re.compile(r"\b(\d{10})\b")
ECLI_RE = re.compile(r"\b(ECLI:[A-Z]{2}:[A-Z0-9]+:\d{4}:[A-Z0-9.]+)", re.IGNORECASE)


def load_eval_queries(path: Path) -> List[Dict]:
    data = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            data.append(json.loads(line))
    return data


def find_identifier_mentions(answer: str) -> List[str]:
    """
    Every NUMAC (10 digits) and ECLI the answer mentions, deduplicated.
    ECLIs are upper-cased so they compare equal to the store's.
    """
    out = set(NUMAC_RE.findall(answer))
    out.update(m.upper().rstrip(".") for m in ECLI_RE.findall(answer))
    return sorted(out)


def is_refusal(answer: str) -> bool:
    phrases = [p for by_lang in REFUSALS.values() for p in by_lang.values()]
    phrases += [p for by_lang in NOT_FOUND.values() for p in by_lang.values()]
    return any(p.lower() in answer.lower() for p in phrases)


def classify_answer(answer: str, source_ids: List[str]) -> str:
    """
    grounded   - cites at least one identifier, and all of them are its own sources
    refused    - the canned refusal / not-found text
    ungrounded - anything else (cites nothing, or cites something it was not given)
    """
    mentioned = find_identifier_mentions(answer)
    allowed = {s.upper() for s in source_ids}
    if mentioned and all(m.upper() in allowed for m in mentioned):
        return "grounded"
    if is_refusal(answer):
        return "refused"
    return "ungrounded"


def evaluate_generation(eval_data: List[Dict], assistant: LegalAssistant):
    rows = []
    counts = {"grounded": 0, "refused": 0, "ungrounded": 0, "error": 0}
    answerable = 0
    refused_answerable = 0

    for ex in eval_data:
        q = ex["question"]
        language = ex.get("language", "nl")
        source = ex.get("source", Source.LEGISLATION.value)

        result = assistant.ask(q, language=language, source=source)
        if isinstance(result, ErrorResponse):
            counts["error"] += 1
            rows.append({"question": q, "error": result.error, "details": result.details})
            continue

        source_ids = [s.numac or s.title for s in result.sources]
        label = classify_answer(result.answer, source_ids)
        counts[label] += 1

        # a question with gold sources should not be refused
        expected_answerable = bool(ex.get("gold_numacs") or ex.get("gold_eclis"))
        if expected_answerable:
            answerable += 1
            if label == "refused":
                refused_answerable += 1

        rows.append({
            "question": q,
            "language": language,
            "source": source,
            "answer": result.answer,
            "source_ids": source_ids,
            "mentioned": find_identifier_mentions(result.answer),
            "label": label,
            "expected_answerable": expected_answerable,
            "response_time": result.response_time,
        })

    n = len(eval_data)
    summary = {f"{k}_%": (v / n if n else 0.0) for k, v in counts.items()}
    summary["num_examples"] = n
    answered = counts["grounded"] + counts["ungrounded"]
    # share of real answers that stayed inside their sources
    summary["grounding_precision"] = counts["grounded"] / answered if answered else 0.0
    # share of questions with gold sources that still got a refusal
    summary["refused_answerable_%"] = refused_answerable / answerable if answerable else 0.0

    return rows, summary


def main():
    eval_path = Path("eval/qa_eval.jsonl")
    eval_data = load_eval_queries(eval_path)

    rows, summary = evaluate_generation(eval_data, LegalAssistant(CONFIG))

    print("=== SUMMARY ===")
    for k, v in summary.items():
        print(f"{k}: {v}")

    print("\n=== PER-QUESTION ===")
    for r in rows:
        print(json.dumps(r, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
