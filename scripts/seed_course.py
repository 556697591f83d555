#!/usr/bin/env python3
"""
Load a course definition (JSON) into the database.

Run: python scripts/seed_course.py course.json
     python scripts/seed_course.py course.json --replace

The file follows `api.schemas.course_schemas.CourseDefinition`:
{"code": "AI101", "title": "...", "modules": [{"title": "...", "lessons": [...], "quiz": {...}}]}
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent
for p in (_project_root, _project_root / "src"):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


def main() -> int:
    parser = argparse.ArgumentParser(description="Import a course definition into the database.")
    parser.add_argument("path", help="Course definition JSON file")
    parser.add_argument("--replace", action="store_true", help="Overwrite a course with the same code")
    args = parser.parse_args()

    from pydantic import ValidationError

    from api.config import SessionLocal, create_db
    from api.schemas.course_schemas import CourseDefinition
    from api.services.course_service import CourseService

    try:
        definition = CourseDefinition.model_validate(json.loads(Path(args.path).read_text(encoding="utf-8")))
    except (OSError, ValueError, ValidationError) as e:
        print(f"Cannot read course definition: {e}", file=sys.stderr)
        return 1

    create_db()
    db = SessionLocal()
    try:
        course = CourseService(db).import_course(definition, replace=args.replace)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1
    finally:
        db.close()

    print(f"Imported {course.code}: {len(definition.modules)} modules")
    return 0


if __name__ == "__main__":
    sys.exit(main())
