"""CLI helpers for PalateGraph."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import defaultdict
from typing import Any

from palategraph.core.config import EngineConfig, load_engine_config
from palategraph.core.insights import summarize_palate
from palategraph.core.metrics import accuracy, diversity, mean_absolute_error
from palategraph.core.models import Context
from palategraph.core.pipeline import PalateEngine
from palategraph.core.scoring import PeerRatingSignal, RecommendationScorer
from palategraph.records import (
    dataclass_to_dict,
    parse_candidate,
    parse_food_experience,
    parse_profile,
    parse_recommendation,
    parse_similarity,
    profile_to_dict,
    read_jsonl,
    write_jsonl,
)

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="palategraph")
    parser.add_argument("--config", help="YAML file overriding engine settings")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    learn_cmd = subparsers.add_parser("learn", help="Build palate profiles from experience JSONL")
    learn_cmd.add_argument("file")
    learn_cmd.add_argument("--out", required=True)
    learn_cmd.add_argument("--profiles", help="Existing profiles JSONL to continue from")

    similar_cmd = subparsers.add_parser("similar", help="Find users with a similar palate")
    similar_cmd.add_argument("profiles")
    similar_cmd.add_argument("--user-id", required=True)
    similar_cmd.add_argument("--threshold", type=float)
    similar_cmd.add_argument("--out", required=True)

    recommend_cmd = subparsers.add_parser("recommend", help="Score and rank candidate items")
    recommend_cmd.add_argument("profiles")
    recommend_cmd.add_argument("candidates")
    recommend_cmd.add_argument("--user-id", required=True)
    recommend_cmd.add_argument("--out", required=True)
    recommend_cmd.add_argument("--max-n", type=int, default=10)
    recommend_cmd.add_argument(
        "--context", action="append", default=[], metavar="KEY=VALUE"
    )
    recommend_cmd.add_argument("--similar", help="Similar-user JSONL (found on the fly if omitted)")
    recommend_cmd.add_argument("--peer-ratings", help="JSONL of {user_id, item_id, rating}")

    evaluate_cmd = subparsers.add_parser("evaluate", help="Evaluate recommendations against ratings")
    evaluate_cmd.add_argument("predictions")
    evaluate_cmd.add_argument("ratings")

    summary_cmd = subparsers.add_parser("summary", help="Describe a user's palate")
    summary_cmd.add_argument("profiles")
    summary_cmd.add_argument("--user-id", required=True)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_engine_config(args.config)
        return _dispatch(args, config)
    except (KeyError, ValueError) as exc:
        message = exc.args[0] if isinstance(exc, KeyError) and exc.args else exc
        print(f"palategraph: error: {message}", file=sys.stderr)
        return 2


def _dispatch(args: argparse.Namespace, config: EngineConfig) -> int:
    if args.command == "learn":
        engine = PalateEngine(config)
        if args.profiles:
            for record in read_jsonl(args.profiles):
                engine.store.save(parse_profile(record))
        experiences = [parse_food_experience(obj) for obj in read_jsonl(args.file)]
        engine.learn(experiences)
        profiles = sorted(engine.store.list_all().values(), key=lambda p: p.user_id)
        write_jsonl(args.out, [profile_to_dict(p) for p in profiles])
        return 0

    if args.command == "similar":
        engine = _engine_with_profiles(args.profiles, config)
        matches = engine.similar_users(args.user_id, threshold=args.threshold)
        write_jsonl(args.out, [dataclass_to_dict(m) for m in matches])
        return 0

    if args.command == "recommend":
        scorer = None
        if args.peer_ratings:
            scorer = RecommendationScorer(
                config, collaborative=PeerRatingSignal(_load_peer_ratings(args.peer_ratings))
            )
        engine = _engine_with_profiles(args.profiles, config, scorer=scorer)
        similar = (
            [parse_similarity(obj) for obj in read_jsonl(args.similar)] if args.similar else None
        )
        candidates = [parse_candidate(obj) for obj in read_jsonl(args.candidates)]
        results = engine.recommend_for(
            args.user_id,
            candidates,
            current_context=_parse_context_args(args.context),
            similar_users=similar,
            max_n=args.max_n,
        )
        write_jsonl(args.out, [dataclass_to_dict(r) for r in results])
        return 0

    if args.command == "evaluate":
        predictions = [parse_recommendation(obj) for obj in read_jsonl(args.predictions)]
        ratings = [(str(obj["item_id"]), float(obj["rating"])) for obj in read_jsonl(args.ratings)]
        report = {
            "accuracy": accuracy(predictions, ratings, tolerance=config.accuracy_tolerance),
            "mean_absolute_error": mean_absolute_error(predictions, ratings),
            "diversity": diversity(predictions),
            "predictions": len(predictions),
        }
        print(json.dumps(report, indent=2))
        return 0

    if args.command == "summary":
        engine = _engine_with_profiles(args.profiles, config)
        summary = summarize_palate(engine.profile(args.user_id).palate_vector)
        print(json.dumps(dataclass_to_dict(summary), indent=2))
        return 0

    return 1


def _engine_with_profiles(
    path: str, config: EngineConfig, scorer: RecommendationScorer | None = None
) -> PalateEngine:
    engine = PalateEngine(config, scorer=scorer)
    for record in read_jsonl(path):
        engine.store.save(parse_profile(record))
    logger.debug("Loaded %d profiles from %s", len(engine.store.list_all()), path)
    return engine


def _parse_context_args(pairs: list[str]) -> Context:
    data: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Context must be KEY=VALUE, got '{pair}'")
        data[key.strip()] = value.strip()
    return Context.from_mapping(data)


def _load_peer_ratings(path: str) -> dict[str, dict[str, float]]:
    ratings: dict[str, dict[str, float]] = defaultdict(dict)
    for obj in read_jsonl(path):
        ratings[str(obj["user_id"])][str(obj["item_id"])] = float(obj["rating"])
    return dict(ratings)


if __name__ == "__main__":
    raise SystemExit(main())
