#!/usr/bin/env python
"""Django's command-line utility for administrative tasks."""
import os
import sys


def run_initial_setup():
    """Apply pending migrations before the development server starts."""
    from django.core.management import call_command
    from django.core.management.base import CommandError

    print("📊 Applying migrations...")
    try:
        call_command('migrate', interactive=False, verbosity=0)
        print("✅ Migrations up to date!")
    except CommandError as e:
        print(f"❌ Migration failed: {e}")


def main():
    """Run administrative tasks."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core_config.settings")
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc

    if len(sys.argv) > 1 and sys.argv[1] == 'runserver' and os.environ.get('RUN_MAIN') != 'true':
        import django
        django.setup()
        run_initial_setup()

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
