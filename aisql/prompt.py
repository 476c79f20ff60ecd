"""
Prompt Module

Turns the schema snapshot and a question into the completion prompt.
"""

from .database import DatabaseSchema


PROMPT_TEMPLATE = (
    "{schema_summary} \n"
    "\tAs a senior analyst, given the above schemas, write a detailed and correct {dialect} sql query"
    " to answer the analytical question:\n"
    "\t\n"
    "\t\"{question}\"\n"
    "\t\n"
    "\tComment the query with your logic"
)


def generate_schema_summary(schema: DatabaseSchema) -> str:
    """One header line per table, one tab-indented line per column, blank line between tables"""
    lines = []
    for table, fields in schema.items():
        lines.append(f"Schema for table: {table}")
        for field in fields:
            lines.append(f"\t{field.column} {field.datatype}")
        lines.append("")
    return "\n".join(lines) + "\n" if lines else ""


def generate_prompt(schema: DatabaseSchema, question: str, dialect: str = "Postgres") -> str:
    """
    Build the completion prompt for a question.

    Args:
        schema: Schema snapshot taken at startup
        question: Natural language question, quoted verbatim
        dialect: SQL dialect the model should write

    Returns:
        Prompt text; identical inputs always give identical output
    """
    return PROMPT_TEMPLATE.format(
        schema_summary=generate_schema_summary(schema),
        dialect=dialect,
        question=question,
    )
