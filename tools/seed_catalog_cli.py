# tools/seed_catalog_cli.py
# -*- coding: utf-8 -*-
"""
Import per-country phase catalogs from Excel/CSV into country_application_processes.
- upsert key is the canonical country (services.countries.canonicalize)
- steps column: JSON list ('["DOCUMENT_COLLECTION", {"key": "SEVIS_FEE", "label": "SEVIS Fee"}]')
  or comma separated keys with optional labels ('DOCUMENT_COLLECTION, SEVIS_FEE:SEVIS Fee Payment')
Usage:
  python tools/seed_catalog_cli.py --file ./country_processes.xlsx --app-factory-path app --app-factory-func create_app
"""
import argparse, json, sys
from typing import List, Optional


def load_df(path: str, sheet: Optional[str] = None):
    import pandas as pd
    if path.lower().endswith(".xlsx"):
        return pd.read_excel(path, sheet_name=sheet or 0)
    return pd.read_csv(path)


def _is_blank(val) -> bool:
    import pandas as pd
    if val is None:
        return True
    if isinstance(val, float) and pd.isna(val):
        return True
    return isinstance(val, str) and not val.strip()


def parse_steps(val) -> List[dict]:
    """Normalised [{"key", "label"}, ...]; unlabeled steps get a label from the key."""
    from services.phase_catalog import normalize_steps

    if _is_blank(val):
        return []
    if isinstance(val, list):
        raw = val
    else:
        s = str(val).strip()
        try:
            raw = json.loads(s)
            if not isinstance(raw, list):
                raw = []
        except ValueError:
            raw = []
            for part in s.split(","):
                part = part.strip()
                if not part:
                    continue
                key, _, label = part.partition(":")
                raw.append({"key": key.strip(), "label": label.strip() or None})
    return [{"key": k, "label": l} for k, l in normalize_steps(raw)]


def main(argv=None):
    ap = argparse.ArgumentParser(description="Import country phase catalogs from Excel/CSV (upsert by country)")
    ap.add_argument("--file", required=True, help="Excel/CSV path")
    ap.add_argument("--sheet", default=None, help="Excel sheet name (first sheet when omitted)")
    ap.add_argument("--app-factory-path", default="app", help="Flask factory module (e.g. app)")
    ap.add_argument("--app-factory-func", default="create_app", help="Flask factory function (e.g. create_app)")
    ap.add_argument("--dry-run", action="store_true", help="print only, no writes")
    args = ap.parse_args(argv)

    # 1) read sheet
    df = load_df(args.file, args.sheet)
    missing = [c for c in ("country", "steps") if c not in df.columns]
    if missing:
        print(f"❌ Excel/CSV is missing column(s): {', '.join(missing)}", file=sys.stderr)
        sys.exit(1)

    # 2) Flask & DB
    mod = __import__(args.app_factory_path, fromlist=[args.app_factory_func])
    create_app = getattr(mod, args.app_factory_func)
    app = create_app()

    with app.app_context():
        from extensions import db
        from models.country_process import CountryApplicationProcess
        from services.countries import canonicalize, clean_country_name

        records = df.where(df.notnull(), None).to_dict(orient="records")
        total = len(records)
        created = updated = 0

        for i, row in enumerate(records, start=1):
            country = clean_country_name(row.get("country"))
            key = canonicalize(country)
            if not key:
                print(f"[{i}/{total}] skipped: no country")
                continue
            steps = parse_steps(row.get("steps"))
            if not steps:
                print(f"[{i}/{total}] skipped {country}: no steps")
                continue

            proc = CountryApplicationProcess.query.filter_by(country_key=key).first()
            is_new = proc is None
            if args.dry_run:
                print(f"[{i}/{total}] {'+ CREATE' if is_new else '~ UPDATE'} {key}: {[s['key'] for s in steps]}")
                continue

            if is_new:
                proc = CountryApplicationProcess(country=country, country_key=key)
                db.session.add(proc)
            proc.steps = steps
            if "is_active" in row and row["is_active"] is not None:
                proc.is_active = str(row["is_active"]).strip().lower() not in ("0", "false", "no")
            db.session.commit()

            if is_new:
                created += 1
                print(f"[{i}/{total}] ✅ CREATE {key} ({len(steps)} phases)")
            else:
                updated += 1
                print(f"[{i}/{total}] ✅ UPDATE {key} ({len(steps)} phases)")

        print(f"\nDone: created {created}, updated {updated}, total {created + updated}")


if __name__ == "__main__":
    main()
