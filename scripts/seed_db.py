from __future__ import annotations

import importlib

from config import get_settings_module

from employee_directory.database.bootstrap import ensure_default_users


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    created = ensure_default_users(db_config)

    print(
        "OK: Seeded database -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(created={', '.join(created) or 'none'})"
    )


if __name__ == "__main__":
    main()
