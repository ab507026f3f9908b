#!/usr/bin/env python
"""
Mark Sheet Grader - Application Entry Point

Usage:
    python run.py [--host HOST] [--port PORT] [--reload]
    python run.py grade PAGES_DIR [--csv OUT.csv] [--excel]

Examples:
    python run.py                         # Start the API with defaults
    python run.py --reload                # Start with auto-reload
    python run.py grade scans/            # Grade a directory of page images
"""
import argparse
import sys
import uvicorn

from marksheet.config import settings


def serve(args):
    print(f"""
╔══════════════════════════════════════════════════════════════╗
                 Mark Sheet Grader API Server
╠══════════════════════════════════════════════════════════════╣
    Host: {args.host:<15}
    Port: {args.port:<15}
    Reload: {'Enabled' if args.reload else 'Disabled':<12}
╠══════════════════════════════════════════════════════════════╣
    API Docs: http://{args.host}:{args.port}/docs
    ReDoc:    http://{args.host}:{args.port}/redoc
╚══════════════════════════════════════════════════════════════╝
    """)

    uvicorn.run(
        "marksheet.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info"
    )


def grade(args):
    from marksheet.services import grading_service

    try:
        results = grading_service.processor.process_directory(grading_service.session, args.pages_dir)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return 1

    if not results:
        print(f"No pages graded in {args.pages_dir}")
        return 1

    for r in results:
        print(f"Page {r.page:>3}  ID {r.student_id}  {r.score}/{r.max_score}")

    if args.csv:
        with open(args.csv, "w", encoding="utf-8", newline="") as f:
            f.write(grading_service.session.export_csv())
        print(f"CSV written to {args.csv}")

    if args.excel:
        print(f"Excel written to {grading_service.export_to_excel()}")

    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Mark Sheet Grader"
    )
    parser.add_argument(
        "--host",
        default=settings.HOST,
        help=f"Host to bind (default: {settings.HOST})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help=f"Port to bind (default: {settings.PORT})"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development"
    )

    subparsers = parser.add_subparsers(dest="command")
    grade_parser = subparsers.add_parser("grade", help="Grade a directory of page images")
    grade_parser.add_argument("pages_dir", help="Directory of page images; the first is the key")
    grade_parser.add_argument("--csv", help="Write results to this CSV file")
    grade_parser.add_argument("--excel", action="store_true", help="Write an Excel workbook to the exports directory")

    args = parser.parse_args()

    if args.command == "grade":
        return grade(args)

    serve(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
