"""Static catalog describing how each entity type is joined and labelled.

Each definition is keyed by the object type ``code``. The numeric
``object_types.id`` is bound at load time by the registry loader, so the
catalog never hard-codes database identifiers.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TranslationJoin:
    """Label join for a coded column.

    When ``lookup_table`` is set, ``code_column`` holds a lookup id
    (``sex_id -> sexes.code -> translations``). Otherwise ``code_column``
    already holds a translation code.
    """

    code_column: str
    alias: str
    name_field: str
    lookup_table: Optional[str] = None
    code_field: str = "code"

    @property
    def is_direct(self) -> bool:
        return self.lookup_table is None


@dataclass(frozen=True)
class DisplayName:
    """Display-name expression for a related object.

    Columns are coalesced to '' and joined with ``separator``. ``prefix`` is
    prepended as a literal. When ``translation_alias`` names one of the
    entity's label joins, its translated text wins over the columns.
    """

    columns: tuple[str, ...] = ()
    separator: str = " "
    prefix: str = ""
    translation_alias: Optional[str] = None


@dataclass(frozen=True)
class EntityDefinition:
    """Table, alias, columns and labels for one entity type."""

    code: str
    table_name: str
    alias: str
    select_columns: tuple[str, ...]
    display_name: DisplayName
    translation_columns: tuple[TranslationJoin, ...] = ()

    def column_label(self, column: str) -> str:
        return f"{self.alias}_{column}"

    def translation_label(self, join: TranslationJoin) -> str:
        return f"{self.alias}_{join.name_field}"


PERSON = EntityDefinition(
    code="person",
    table_name="persons",
    alias="p",
    select_columns=(
        "id",
        "first_name",
        "middle_name",
        "last_name",
        "mother_name",
        "sex_id",
        "salutation_id",
        "birth_date",
    ),
    translation_columns=(
        TranslationJoin(code_column="sex_id", lookup_table="sexes", alias="s", name_field="sex_name"),
        TranslationJoin(
            code_column="salutation_id", lookup_table="salutations", alias="sal", name_field="salutation_name"
        ),
    ),
    display_name=DisplayName(columns=("first_name", "last_name")),
)

COMPANY = EntityDefinition(
    code="company",
    table_name="companies",
    alias="c",
    select_columns=("id", "company_id", "company_name"),
    display_name=DisplayName(columns=("company_name",)),
)

USER = EntityDefinition(
    code="user",
    table_name="users",
    alias="u",
    select_columns=("id", "username"),
    display_name=DisplayName(columns=("username",)),
)

DOCUMENT = EntityDefinition(
    code="document",
    table_name="documents",
    alias="d",
    select_columns=("id", "document_type", "document_name"),
    translation_columns=(
        TranslationJoin(code_column="document_type", alias="dt", name_field="document_type_name"),
    ),
    display_name=DisplayName(columns=("document_name",)),
)

INVOICE = EntityDefinition(
    code="invoice",
    table_name="invoices",
    alias="i",
    select_columns=(
        "id",
        "invoice_number",
        "issue_date",
        "due_date",
        "final_amount",
        "currency_id",
        "is_paid",
        "is_void",
    ),
    display_name=DisplayName(columns=("invoice_number",)),
)

TRANSACTION = EntityDefinition(
    code="transaction",
    table_name="transactions",
    alias="t",
    select_columns=(
        "id",
        "transaction_type_id",
        "transaction_date_start",
        "transaction_date_end",
        "is_active",
    ),
    translation_columns=(
        TranslationJoin(
            code_column="transaction_type_id",
            lookup_table="transaction_types",
            alias="tt",
            name_field="transaction_type_name",
        ),
    ),
    display_name=DisplayName(columns=("id",), prefix="Transaction #"),
)

FILE = EntityDefinition(
    code="file",
    table_name="files",
    alias="f",
    select_columns=("id", "file_name"),
    display_name=DisplayName(columns=("file_name",)),
)

# Order fixes the branch order and the column layout of the relations query
ENTITY_DEFINITIONS: tuple[EntityDefinition, ...] = (
    PERSON,
    COMPANY,
    USER,
    DOCUMENT,
    INVOICE,
    TRANSACTION,
    FILE,
)
