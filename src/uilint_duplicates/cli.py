"""Command line entry point: ``uilint-duplicates``."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import api
from .config import load_config
from .core.embeddings import OllamaEmbedder, make_embedder
from .core.models import CHUNK_KINDS
from .errors import ConfigError, EmbeddingError, NoIndexError
from .lint import lint_paths

log = logging.getLogger("uilint_duplicates")


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _progress(message: str, current: Optional[int], total: Optional[int]) -> None:
    if current and total:
        log.debug(f"[{current}/{total}] {message}")
    else:
        log.info(message)


def cmd_index(args: argparse.Namespace) -> int:
    root = args.path.resolve()
    if not root.is_dir():
        log.error(f"Not a directory: {root}")
        return 1
    cfg = load_config(root)
    embedder = make_embedder(cfg)
    if isinstance(embedder, OllamaEmbedder):
        embedder.ensure_model()
    stats = api.index_directory(root, cfg=cfg, force=args.force, progress=_progress, embedder=embedder)
    if args.json:
        _print_json(dataclasses.asdict(stats))
        return 0
    print(
        f"Indexed {stats.chunks_created} chunks from {stats.files_indexed}/{stats.files_discovered} files "
        f"in {stats.elapsed_seconds:.1f}s"
    )
    print(f"  embedded: {stats.chunks_embedded}  reused: {stats.chunks_reused}  failed: {stats.chunks_failed}")
    return 0


def cmd_find(args: argparse.Namespace) -> int:
    root = args.path.resolve()
    groups = api.find_duplicates(
        root,
        threshold=args.threshold,
        min_group_size=args.min_group_size,
        kind=args.kind,
        exclude_paths=args.exclude,
        cfg=load_config(root),
    )
    if args.json:
        _print_json([g.to_dict() for g in groups])
        return 0
    if not groups:
        print("No semantic duplicates found.")
        return 0
    for i, group in enumerate(groups, start=1):
        print(f"Group {i}: {len(group.members)} {group.kind} chunks, avg similarity {group.avg_similarity:.0%}")
        for m in group.members:
            print(f"  {m.chunk.file_path}:{m.chunk.start_line}-{m.chunk.end_line}  {m.chunk.name or '(anonymous)'}  {m.score:.0%}")
    return 0


def _print_results(results: List[api.SearchResult], as_json: bool) -> None:
    if as_json:
        _print_json([r.to_dict() for r in results])
        return
    if not results:
        print("No similar code found.")
        return
    for r in results:
        print(f"{r.score:0.4f}  {r.file_path}:{r.start_line}-{r.end_line}  {r.kind} {r.name or '(anonymous)'}")


def cmd_search(args: argparse.Namespace) -> int:
    root = args.path.resolve()
    results = api.search_similar(
        args.query, root, top_k=args.top, threshold=args.threshold, cfg=load_config(root)
    )
    _print_results(results, args.json)
    return 0


def cmd_similar(args: argparse.Namespace) -> int:
    root = args.path.resolve()
    location = args.location
    line = args.line
    if line is None:
        file_part, sep, line_part = location.rpartition(":")
        if not sep or not line_part.isdigit():
            log.error(f"Expected FILE:LINE or --line, got {location!r}")
            return 2
        location, line = file_part, int(line_part)
    results = api.find_similar_at_location(
        root, location, line, top_k=args.top, threshold=args.threshold, cfg=load_config(root)
    )
    _print_results(results, args.json)
    return 0


def cmd_lint(args: argparse.Namespace) -> int:
    root = args.path.resolve()
    overrides = {"lint": {"threshold": args.threshold}} if args.threshold is not None else None
    cfg = load_config(root, overrides=overrides)
    if not api.has_index(root, cfg=cfg):
        raise NoIndexError(f"No index found at {root}. Run 'uilint-duplicates index' first.")

    targets = [f.resolve() for f in args.files] or [root]
    findings = lint_paths(targets, cfg=cfg, project_root=root)
    if args.json:
        _print_json([f.to_dict() for f in findings])
    else:
        for f in findings:
            print(f"{f.file_path}:{f.line}  warning  {f.message}  uilint/no-semantic-duplicates")
        if findings:
            print(f"\n{len(findings)} semantic duplicate warning(s)")
    return 1 if findings else 0


def cmd_stats(args: argparse.Namespace) -> int:
    root = args.path.resolve()
    stats = api.get_index_stats(root, cfg=load_config(root))
    if args.json:
        _print_json(stats)
        return 0
    if not stats["hasIndex"]:
        print(f"No index at {root}")
        return 0
    print(f"Files:      {stats['totalFiles']}")
    print(f"Chunks:     {stats['totalChunks']} ({stats['totalVectors']} embedded)")
    print(f"Dimension:  {stats['dimension']}")
    print(f"Size:       {stats['indexSizeBytes']} bytes")
    print(f"Model:      {stats['embeddingModel']}")
    print(f"Updated:    {stats['lastUpdated']}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("uilint_duplicates.web.app:app", host=args.host, port=args.port, log_level="info")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uilint-duplicates",
        description="Semantic duplicate detection for React/TypeScript codebases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s index .
  %(prog)s find --threshold 0.9 --kind component
  %(prog)s similar src/components/UserCard.tsx:12
  %(prog)s lint src/
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_common(p: argparse.ArgumentParser, path_flag: bool = False) -> None:
        if path_flag:
            p.add_argument("--path", "-p", type=Path, default=Path("."), help="Project root (default: .)")
        else:
            p.add_argument("path", type=Path, nargs="?", default=Path("."), help="Project root (default: .)")
        p.add_argument("--json", action="store_true", help="Output JSON")

    p = subparsers.add_parser("index", help="Build or update the semantic index")
    add_common(p)
    p.add_argument("--force", "-f", action="store_true", help="Re-embed every chunk")
    p.set_defaults(func=cmd_index)

    p = subparsers.add_parser("find", help="List groups of semantically duplicated code")
    add_common(p)
    p.add_argument("--threshold", "-t", type=float, default=None, help="Minimum similarity (default: from config)")
    p.add_argument("--min-group-size", "-m", type=int, default=None, help="Minimum group size (default: 2)")
    p.add_argument("--kind", "-k", choices=CHUNK_KINDS, default=None, help="Only this chunk kind")
    p.add_argument("--exclude", action="append", default=[], help="Skip paths containing this text")
    p.set_defaults(func=cmd_find)

    p = subparsers.add_parser("search", help="Find code similar to a text query")
    p.add_argument("query", help="Natural-language description or code snippet")
    add_common(p, path_flag=True)
    p.add_argument("--top", "-n", type=int, default=api.DEFAULT_SEARCH_TOP_K, help="Number of results")
    p.add_argument("--threshold", "-t", type=float, default=api.DEFAULT_SEARCH_THRESHOLD, help="Minimum similarity")
    p.set_defaults(func=cmd_search)

    p = subparsers.add_parser("similar", help="Find code similar to FILE:LINE")
    p.add_argument("location", help="FILE:LINE, or FILE together with --line")
    add_common(p, path_flag=True)
    p.add_argument("--line", "-l", type=int, default=None, help="Line number")
    p.add_argument("--top", "-n", type=int, default=api.DEFAULT_SEARCH_TOP_K, help="Number of results")
    p.add_argument("--threshold", "-t", type=float, default=api.DEFAULT_SEARCH_THRESHOLD, help="Minimum similarity")
    p.set_defaults(func=cmd_similar)

    p = subparsers.add_parser("lint", help="Report semantic duplicates in files, exit 1 on findings")
    p.add_argument("files", type=Path, nargs="*", help="Files or directories (default: the project)")
    add_common(p, path_flag=True)
    p.add_argument("--threshold", "-t", type=float, default=None, help="Minimum similarity (default: from config)")
    p.set_defaults(func=cmd_lint)

    p = subparsers.add_parser("stats", help="Show index statistics")
    add_common(p)
    p.set_defaults(func=cmd_stats)

    p = subparsers.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except (NoIndexError, EmbeddingError, ConfigError) as e:
        log.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
