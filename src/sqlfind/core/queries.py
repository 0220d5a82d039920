"""T-SQL catalog queries used by the search and scripting layers."""

ALL_OBJECTS_QUERY = """
SELECT ss.name AS SchemaName
    , o.name AS ObjectName
    , 'TABLE' AS ObjectType
FROM sys.objects AS o
JOIN sys.schemas AS ss ON o.schema_id = ss.schema_id
WHERE o.type = 'U'
UNION ALL
SELECT ss.name AS SchemaName
    , o.name AS ObjectName
    , o.type_desc AS ObjectType
FROM sys.sql_modules AS m
JOIN sys.objects AS o ON m.object_id = o.object_id
JOIN sys.schemas AS ss ON o.schema_id = ss.schema_id
WHERE o.type IN ('V', 'P', 'FN', 'IF', 'TF')
UNION ALL
SELECT ss.name AS SchemaName
    , sn.name AS ObjectName
    , 'SYNONYM' AS ObjectType
FROM sys.synonyms AS sn
JOIN sys.schemas AS ss ON sn.schema_id = ss.schema_id;
"""

COLUMNS_QUERY = """
SELECT
    s.name AS SchemaName,
    o.name AS ObjectName,
    o.type_desc AS ObjectType,
    STUFF((
        SELECT ', ' + c.name
        FROM sys.columns c
        WHERE c.object_id = o.object_id
        ORDER BY c.column_id
        FOR XML PATH(''), TYPE
    ).value('.', 'NVARCHAR(MAX)'), 1, 2, '') AS Columns
FROM sys.objects o
INNER JOIN sys.schemas s ON o.schema_id = s.schema_id
WHERE o.type IN ('U', 'V')
    AND o.is_ms_shipped = 0
ORDER BY s.name, o.name;
"""

# Scripting helpers. Identifiers are passed as quoted literals built by
# `sql_literal`, never concatenated raw.

OBJECT_COLUMNS_QUERY = """
SELECT c.name AS ColumnName
    , t.name AS TypeName
    , c.max_length AS MaxLength
    , c.precision AS Precision
    , c.scale AS Scale
    , c.is_nullable AS IsNullable
    , c.is_identity AS IsIdentity
FROM sys.columns AS c
JOIN sys.types AS t ON c.user_type_id = t.user_type_id
WHERE c.object_id = OBJECT_ID({qualified})
ORDER BY c.column_id;
"""

OBJECT_PARAMETERS_QUERY = """
SELECT p.name AS ParameterName
    , t.name AS TypeName
    , p.is_output AS IsOutput
FROM sys.parameters AS p
JOIN sys.types AS t ON p.user_type_id = t.user_type_id
WHERE p.object_id = OBJECT_ID({qualified})
    AND p.parameter_id > 0
ORDER BY p.parameter_id;
"""

OBJECT_DEFINITION_QUERY = """
SELECT OBJECT_DEFINITION(OBJECT_ID({qualified})) AS Definition;
"""

SYNONYM_TARGET_QUERY = """
SELECT base_object_name AS BaseObjectName
FROM sys.synonyms
WHERE object_id = OBJECT_ID({qualified});
"""

OBJECT_KIND_QUERY = """
SELECT RTRIM(o.type) AS TypeCode
FROM sys.objects AS o
WHERE o.object_id = OBJECT_ID({qualified});
"""


def sql_literal(value: str) -> str:
    """Return a N'...' string literal with embedded quotes doubled."""
    return "N'" + value.replace("'", "''") + "'"


def use_database(database: str, sql: str) -> str:
    """Prefix a batch with `USE [database];`."""
    escaped = database.replace("]", "]]")
    return f"USE [{escaped}];\n{sql}"
