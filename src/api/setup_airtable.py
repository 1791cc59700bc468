"""
Setup script to create the deal alert tables in Airtable.

Run once after creating an empty Airtable base:
    PYTHONPATH=src python -m api.setup_airtable

Requires .env with:
    AIRTABLE_API_KEY=patXXXXXXXXXXXXXX
    AIRTABLE_BASE_ID=appXXXXXXXXXXXXXX
"""

import sys

from pyairtable import Api

from alerts.config import AlertSettings
from alerts.models import ASSIGNED, NOT_ASSIGNED

ISO_DATE = {"dateFormat": {"name": "iso"}}


def table_schemas(settings: AlertSettings) -> dict[str, dict]:
    """Field definitions per table. The first field becomes the primary field."""
    return {
        settings.deals_table: {
            "description": "Deals on the board with their DD deadlines",
            "fields": [
                {"name": "address", "type": "singleLineText"},
                {"name": "acq_manager_first_name", "type": "singleLineText"},
                {"name": "dd_deadline", "type": "date", "options": ISO_DATE},
                {
                    "name": "assignment_status",
                    "type": "singleSelect",
                    "options": {
                        "choices": [
                            {"name": NOT_ASSIGNED, "color": "yellowBright"},
                            {"name": ASSIGNED, "color": "greenBright"},
                        ]
                    },
                },
                {"name": "assigned_rep_user_id", "type": "singleLineText"},
                {"name": "created_by", "type": "singleLineText"},
            ],
        },
        settings.roles_table: {
            "description": "Application roles per user",
            "fields": [
                {"name": "user_id", "type": "singleLineText"},
                {
                    "name": "role",
                    "type": "singleSelect",
                    "options": {"choices": [{"name": "admin"}, {"name": "acq_manager"}]},
                },
            ],
        },
        settings.profiles_table: {
            "description": "Display profiles for team members",
            "fields": [
                {"name": "user_id", "type": "singleLineText"},
                {"name": "email", "type": "email"},
                {"name": "first_name", "type": "singleLineText"},
            ],
        },
        settings.users_table: {
            "description": "User directory used to resolve alert recipients",
            "fields": [
                {"name": "user_id", "type": "singleLineText"},
                {"name": "email", "type": "email"},
            ],
        },
    }


def create_missing_tables(api: Api, base_id: str, settings: AlertSettings) -> list[str]:
    """Create every table that doesn't exist yet. Returns the names created."""
    base = api.base(base_id)
    existing = {t.name.lower() for t in base.schema().tables}
    created = []

    for name, schema in table_schemas(settings).items():
        if name.lower() in existing:
            print(f"Table '{name}' already exists. Skipping creation.")
            continue

        fields = schema["fields"]
        print(f"Creating '{name}' table with {len(fields)} fields...")
        table = base.create_table(name=name, fields=fields, description=schema["description"])
        print(f"Created table: {table.name} (ID: {table.id})")
        for field in fields:
            print(f"  - {field['name']} ({field['type']})")
        created.append(name)

    return created


def main():
    settings = AlertSettings.from_env()

    if not settings.airtable_api_key:
        print("Error: AIRTABLE_API_KEY not found in .env")
        sys.exit(1)
    if not settings.airtable_base_id:
        print("Error: AIRTABLE_BASE_ID not found in .env")
        sys.exit(1)

    print(f"Connecting to Airtable base: {settings.airtable_base_id}")
    api = Api(settings.airtable_api_key)

    try:
        schema = api.base(settings.airtable_base_id).schema()
        print(f"Connected to base with {len(schema.tables)} existing table(s)")
    except Exception as e:
        print(f"Error connecting to Airtable: {e}")
        print("\nMake sure your API token has these scopes:")
        print("  - data.records:read")
        print("  - schema.bases:read")
        print("  - schema.bases:write")
        sys.exit(1)

    create_missing_tables(api, settings.airtable_base_id, settings)
    print("\nSetup complete!")


if __name__ == "__main__":
    main()
