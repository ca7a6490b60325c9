"""Entry point for 'python -m schemaflow' command.

This module allows the SchemaFlow CLI to be invoked using
'python -m schemaflow init-db' or 'python -m schemaflow ddl'.
"""

from schemaflow.cli import main

if __name__ == "__main__":
    main()
