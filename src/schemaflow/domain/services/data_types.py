"""Logical data types and their per-dialect column kinds.

Field descriptions use abstract logical types (``integer``, ``json``,
``uuid``...). This catalog maps them to the column kind a given SQL dialect
understands, and knows default lengths and default interfaces. It has no
dependencies and performs no I/O.
"""


class DataTypes:
    """Logical type names and type-family predicates."""

    TYPE_ALIAS = "alias"

    TYPE_CHAR = "char"
    TYPE_VARCHAR = "varchar"
    TYPE_TINY_TEXT = "tinytext"
    TYPE_TEXT = "text"
    TYPE_MEDIUM_TEXT = "mediumtext"
    TYPE_LONGTEXT = "longtext"
    TYPE_UUID = "uuid"

    TYPE_TINY_JSON = "tinyjson"
    TYPE_JSON = "json"
    TYPE_MEDIUM_JSON = "mediumjson"
    TYPE_LONG_JSON = "longjson"

    TYPE_ARRAY = "array"
    TYPE_CSV = "csv"

    TYPE_TIME = "time"
    TYPE_DATE = "date"
    TYPE_DATETIME = "datetime"
    TYPE_TIMESTAMP = "timestamp"
    TYPE_YEAR = "year"

    TYPE_TINY_INT = "tinyint"
    TYPE_SMALL_INT = "smallint"
    TYPE_MEDIUM_INT = "mediumint"
    TYPE_INT = "int"
    TYPE_INTEGER = "integer"
    TYPE_BIG_INT = "bigint"
    TYPE_LONG = "long"
    TYPE_SERIAL = "serial"

    TYPE_FLOAT = "float"
    TYPE_DOUBLE = "double"
    TYPE_REAL = "real"
    TYPE_DECIMAL = "decimal"
    TYPE_NUMERIC = "numeric"
    TYPE_CURRENCY = "currency"

    TYPE_BIT = "bit"
    TYPE_BOOL = "bool"
    TYPE_BOOLEAN = "boolean"

    TYPE_BINARY = "binary"
    TYPE_VARBINARY = "varbinary"
    TYPE_TINY_BLOB = "tinyblob"
    TYPE_BLOB = "blob"
    TYPE_MEDIUM_BLOB = "mediumblob"
    TYPE_LONG_BLOB = "longblob"

    TYPE_SET = "set"
    TYPE_ENUM = "enum"

    INTEGER_TYPES = frozenset({
        TYPE_YEAR,
        TYPE_TINY_INT,
        TYPE_SMALL_INT,
        TYPE_MEDIUM_INT,
        TYPE_INT,
        TYPE_INTEGER,
        TYPE_BIG_INT,
        TYPE_LONG,
        TYPE_SERIAL,
    })
    FLOATING_POINT_TYPES = frozenset({TYPE_FLOAT, TYPE_DOUBLE, TYPE_REAL})
    FIXED_POINT_TYPES = frozenset({TYPE_DECIMAL, TYPE_NUMERIC, TYPE_CURRENCY})
    STRING_TYPES = frozenset({
        TYPE_CHAR,
        TYPE_VARCHAR,
        TYPE_TINY_TEXT,
        TYPE_TEXT,
        TYPE_MEDIUM_TEXT,
        TYPE_LONGTEXT,
        TYPE_UUID,
        TYPE_ARRAY,
        TYPE_CSV,
        TYPE_TINY_JSON,
        TYPE_JSON,
        TYPE_MEDIUM_JSON,
        TYPE_LONG_JSON,
    })
    JSON_TYPES = frozenset({TYPE_TINY_JSON, TYPE_JSON, TYPE_MEDIUM_JSON, TYPE_LONG_JSON})
    ARRAY_TYPES = frozenset({TYPE_ARRAY, TYPE_CSV})
    BOOLEAN_TYPES = frozenset({TYPE_BOOL, TYPE_BOOLEAN})
    DATE_TYPES = frozenset({TYPE_DATE, TYPE_DATETIME, TYPE_TIMESTAMP, TYPE_TIME, TYPE_YEAR})
    BINARY_TYPES = frozenset({
        TYPE_BINARY,
        TYPE_VARBINARY,
        TYPE_TINY_BLOB,
        TYPE_BLOB,
        TYPE_MEDIUM_BLOB,
        TYPE_LONG_BLOB,
    })
    LIST_TYPES = frozenset({TYPE_SET, TYPE_ENUM})

    @classmethod
    def normalize(cls, type_name: str | None) -> str:
        return (type_name or "").strip().lower()

    @classmethod
    def is_integer_type(cls, type_name: str | None) -> bool:
        return cls.normalize(type_name) in cls.INTEGER_TYPES

    @classmethod
    def is_floating_point_type(cls, type_name: str | None) -> bool:
        return cls.normalize(type_name) in cls.FLOATING_POINT_TYPES

    @classmethod
    def is_numeric_type(cls, type_name: str | None) -> bool:
        name = cls.normalize(type_name)
        return (
            name in cls.INTEGER_TYPES
            or name in cls.FLOATING_POINT_TYPES
            or name in cls.FIXED_POINT_TYPES
        )

    @classmethod
    def is_string_type(cls, type_name: str | None) -> bool:
        return cls.normalize(type_name) in cls.STRING_TYPES

    @classmethod
    def is_json_type(cls, type_name: str | None) -> bool:
        return cls.normalize(type_name) in cls.JSON_TYPES

    @classmethod
    def is_array_type(cls, type_name: str | None) -> bool:
        return cls.normalize(type_name) in cls.ARRAY_TYPES

    @classmethod
    def is_boolean_type(cls, type_name: str | None) -> bool:
        return cls.normalize(type_name) in cls.BOOLEAN_TYPES

    @classmethod
    def is_date_type(cls, type_name: str | None) -> bool:
        return cls.normalize(type_name) in cls.DATE_TYPES

    @classmethod
    def is_binary_type(cls, type_name: str | None) -> bool:
        return cls.normalize(type_name) in cls.BINARY_TYPES

    @classmethod
    def is_list_type(cls, type_name: str | None) -> bool:
        """SET and ENUM columns, whose length is their list of allowed values."""
        return cls.normalize(type_name) in cls.LIST_TYPES


T = DataTypes

# Column kind each logical type is stored as, per dialect. Missing entries
# fall back to the upper-cased logical type name.
DIALECT_COLUMN_KINDS: dict[str, dict[str, str]] = {
    "mysql": {
        T.TYPE_INTEGER: "INT",
        T.TYPE_LONG: "BIGINT",
        T.TYPE_SERIAL: "BIGINT",
        T.TYPE_BOOL: "TINYINT",
        T.TYPE_BOOLEAN: "TINYINT",
        T.TYPE_UUID: "VARCHAR",
        T.TYPE_ARRAY: "VARCHAR",
        T.TYPE_CSV: "VARCHAR",
        T.TYPE_TINY_JSON: "TINYTEXT",
        T.TYPE_JSON: "TEXT",
        T.TYPE_MEDIUM_JSON: "MEDIUMTEXT",
        T.TYPE_LONG_JSON: "LONGTEXT",
        T.TYPE_CURRENCY: "DECIMAL",
    },
    "sqlite": {
        T.TYPE_YEAR: "INTEGER",
        T.TYPE_TINY_INT: "INTEGER",
        T.TYPE_SMALL_INT: "INTEGER",
        T.TYPE_MEDIUM_INT: "INTEGER",
        T.TYPE_INT: "INTEGER",
        T.TYPE_BIG_INT: "INTEGER",
        T.TYPE_LONG: "INTEGER",
        T.TYPE_SERIAL: "INTEGER",
        T.TYPE_FLOAT: "REAL",
        T.TYPE_DOUBLE: "REAL",
        T.TYPE_DECIMAL: "NUMERIC",
        T.TYPE_CURRENCY: "NUMERIC",
        T.TYPE_BIT: "INTEGER",
        T.TYPE_BOOL: "BOOLEAN",
        T.TYPE_UUID: "VARCHAR",
        T.TYPE_ARRAY: "VARCHAR",
        T.TYPE_CSV: "VARCHAR",
        T.TYPE_TINY_TEXT: "TEXT",
        T.TYPE_MEDIUM_TEXT: "TEXT",
        T.TYPE_LONGTEXT: "TEXT",
        T.TYPE_TINY_JSON: "TEXT",
        T.TYPE_JSON: "TEXT",
        T.TYPE_MEDIUM_JSON: "TEXT",
        T.TYPE_LONG_JSON: "TEXT",
        T.TYPE_TIMESTAMP: "DATETIME",
        T.TYPE_BINARY: "BLOB",
        T.TYPE_VARBINARY: "BLOB",
        T.TYPE_TINY_BLOB: "BLOB",
        T.TYPE_MEDIUM_BLOB: "BLOB",
        T.TYPE_LONG_BLOB: "BLOB",
        T.TYPE_SET: "TEXT",
        T.TYPE_ENUM: "TEXT",
    },
    "postgresql": {
        T.TYPE_YEAR: "SMALLINT",
        T.TYPE_TINY_INT: "SMALLINT",
        T.TYPE_MEDIUM_INT: "INTEGER",
        T.TYPE_INT: "INTEGER",
        T.TYPE_LONG: "BIGINT",
        T.TYPE_SERIAL: "BIGINT",
        T.TYPE_DOUBLE: "DOUBLE PRECISION",
        T.TYPE_FLOAT: "REAL",
        T.TYPE_DECIMAL: "NUMERIC",
        T.TYPE_CURRENCY: "NUMERIC",
        T.TYPE_BOOL: "BOOLEAN",
        T.TYPE_ARRAY: "VARCHAR",
        T.TYPE_CSV: "VARCHAR",
        T.TYPE_TINY_TEXT: "TEXT",
        T.TYPE_MEDIUM_TEXT: "TEXT",
        T.TYPE_LONGTEXT: "TEXT",
        T.TYPE_TINY_JSON: "JSON",
        T.TYPE_MEDIUM_JSON: "JSON",
        T.TYPE_LONG_JSON: "JSON",
        T.TYPE_DATETIME: "TIMESTAMP",
        T.TYPE_BINARY: "BYTEA",
        T.TYPE_VARBINARY: "BYTEA",
        T.TYPE_TINY_BLOB: "BYTEA",
        T.TYPE_BLOB: "BYTEA",
        T.TYPE_MEDIUM_BLOB: "BYTEA",
        T.TYPE_LONG_BLOB: "BYTEA",
        T.TYPE_SET: "VARCHAR",
        T.TYPE_ENUM: "VARCHAR",
    },
}

# Default lengths keyed by logical type. Types not listed have no length.
DEFAULT_LENGTHS: dict[str, int | str] = {
    T.TYPE_CHAR: 1,
    T.TYPE_VARCHAR: 255,
    T.TYPE_UUID: 36,
    T.TYPE_ARRAY: 255,
    T.TYPE_CSV: 255,
    T.TYPE_BIT: 1,
    T.TYPE_BINARY: 1,
    T.TYPE_VARBINARY: 255,
    T.TYPE_TINY_INT: 4,
    T.TYPE_SMALL_INT: 6,
    T.TYPE_MEDIUM_INT: 9,
    T.TYPE_INT: 11,
    T.TYPE_INTEGER: 11,
    T.TYPE_BIG_INT: 20,
    T.TYPE_DECIMAL: "10,2",
    T.TYPE_NUMERIC: "10,2",
    T.TYPE_CURRENCY: "10,2",
}

DEFAULT_INTERFACES: dict[str, str] = {
    T.TYPE_ALIAS: "alias",
    T.TYPE_BIT: "toggle",
    T.TYPE_BOOL: "toggle",
    T.TYPE_BOOLEAN: "toggle",
    T.TYPE_CHAR: "text-input",
    T.TYPE_VARCHAR: "text-input",
    T.TYPE_UUID: "text-input",
    T.TYPE_TINY_TEXT: "textarea",
    T.TYPE_TEXT: "textarea",
    T.TYPE_MEDIUM_TEXT: "textarea",
    T.TYPE_LONGTEXT: "textarea",
    T.TYPE_TINY_JSON: "json",
    T.TYPE_JSON: "json",
    T.TYPE_MEDIUM_JSON: "json",
    T.TYPE_LONG_JSON: "json",
    T.TYPE_ARRAY: "tags",
    T.TYPE_CSV: "tags",
    T.TYPE_DATE: "date",
    T.TYPE_DATETIME: "datetime",
    T.TYPE_TIMESTAMP: "datetime",
    T.TYPE_TIME: "time",
    T.TYPE_BLOB: "blob",
    T.TYPE_MEDIUM_BLOB: "blob",
    T.TYPE_LONG_BLOB: "blob",
    T.TYPE_ENUM: "dropdown",
    T.TYPE_SET: "checkboxes",
}

DEFAULT_INTERFACE = "text-input"
NUMERIC_INTERFACE = "numeric"

SUPPORTED_DIALECTS = frozenset(DIALECT_COLUMN_KINDS)


class TypeCatalog:
    """Dialect-bound view over the logical type tables.

    Example:
        >>> TypeCatalog("sqlite").get_data_type("json")
        'TEXT'
        >>> TypeCatalog("mysql").get_default_length("varchar")
        255
    """

    def __init__(self, dialect: str) -> None:
        name = dialect.lower()
        if name not in SUPPORTED_DIALECTS:
            raise ValueError(
                f"Unsupported dialect '{dialect}'. "
                f"Supported dialects: {', '.join(sorted(SUPPORTED_DIALECTS))}"
            )
        self.dialect = name
        self._kinds = DIALECT_COLUMN_KINDS[name]

    def get_data_type(self, type_name: str) -> str:
        """Return the column kind used to store ``type_name`` in this dialect."""
        name = DataTypes.normalize(type_name)
        return self._kinds.get(name, name.upper())

    def get_default_length(self, type_name: str) -> int | str | None:
        """Return the default length for a logical type, or None when it has none."""
        return DEFAULT_LENGTHS.get(DataTypes.normalize(type_name))

    def get_default_interface(self, type_name: str) -> str:
        """Return the interface a field of this type gets when none is stored."""
        name = DataTypes.normalize(type_name)
        if name in DEFAULT_INTERFACES:
            return DEFAULT_INTERFACES[name]
        if DataTypes.is_numeric_type(name):
            return NUMERIC_INTERFACE
        return DEFAULT_INTERFACE
