"""Create object store and relation tables.

Revision ID: 5f2a9c1d7e3b
Revises:
Create Date: 2026-10-18

Creates the lookup and label tables, the polymorphic objects table with
its entity detail tables, and the typed relation graph. No unique
constraint is placed on (object_from_id, object_to_id, object_relation_type_id);
duplicate edges are reported by the data quality scanner instead.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '5f2a9c1d7e3b'
down_revision = None
branch_labels = None
depends_on = None


def _lookup_table(name: str, code_length: int = 30) -> None:
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(code_length), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )


def _detail_id() -> sa.Column:
    return sa.Column('id', sa.BigInteger(), sa.ForeignKey('objects.id', ondelete='CASCADE'), primary_key=True)


def upgrade() -> None:
    """Create object store and relation tables."""
    # Lookup and label tables
    _lookup_table('languages', code_length=10)
    op.create_table(
        'translations',
        sa.Column('code', sa.String(100), primary_key=True),
        sa.Column('language_id', sa.Integer(),
                  sa.ForeignKey('languages.id', ondelete='RESTRICT'), primary_key=True),
        sa.Column('text', sa.Text(), nullable=False),
    )
    _lookup_table('object_types')
    op.create_table(
        'object_statuses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(30), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('object_type_id', sa.Integer(),
                  sa.ForeignKey('object_types.id', ondelete='RESTRICT'), nullable=False),
    )
    _lookup_table('sexes')
    _lookup_table('salutations')
    _lookup_table('transaction_types')
    _lookup_table('currencies', code_length=3)

    # Base object identity
    op.create_table(
        'objects',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('object_type_id', sa.Integer(),
                  sa.ForeignKey('object_types.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('object_status_id', sa.Integer(),
                  sa.ForeignKey('object_statuses.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true(),
                  comment='Soft-delete flag'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_objects_object_type_id', 'objects', ['object_type_id'])
    op.create_index('ix_objects_object_status_id', 'objects', ['object_status_id'])

    # Entity detail tables share the objects primary key
    op.create_table(
        'persons',
        _detail_id(),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('middle_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('mother_name', sa.String(100), nullable=True),
        sa.Column('sex_id', sa.Integer(), sa.ForeignKey('sexes.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('salutation_id', sa.Integer(),
                  sa.ForeignKey('salutations.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
    )
    op.create_index('ix_persons_first_name', 'persons', ['first_name'])
    op.create_index('ix_persons_last_name', 'persons', ['last_name'])

    op.create_table(
        'companies',
        _detail_id(),
        sa.Column('company_id', sa.String(255), nullable=False),
        sa.Column('company_name', sa.String(255), nullable=False),
    )
    op.create_index('ix_companies_company_id', 'companies', ['company_id'])
    op.create_index('ix_companies_company_name', 'companies', ['company_name'])

    op.create_table(
        'users',
        _detail_id(),
        sa.Column('username', sa.String(255), nullable=True),
    )
    op.create_index('ix_users_username', 'users', ['username'])

    op.create_table(
        'documents',
        _detail_id(),
        sa.Column('document_type', sa.String(100), nullable=True,
                  comment='Translation code of the document type'),
        sa.Column('document_name', sa.String(30), nullable=False, unique=True),
    )

    op.create_table(
        'invoices',
        _detail_id(),
        sa.Column('invoice_number', sa.String(50), nullable=False, unique=True),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('final_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('currency_id', sa.Integer(),
                  sa.ForeignKey('currencies.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_void', sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        'transactions',
        _detail_id(),
        sa.Column('transaction_type_id', sa.Integer(),
                  sa.ForeignKey('transaction_types.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('transaction_date_start', sa.TIMESTAMP(timezone=True),
                  server_default=sa.func.now(), nullable=True),
        sa.Column('transaction_date_end', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.create_table(
        'files',
        _detail_id(),
        sa.Column('file_name', sa.String(255), nullable=False),
    )
    op.create_index('ix_files_file_name', 'files', ['file_name'])

    # Relation graph
    op.create_table(
        'object_relation_types',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(30), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('parent_object_type_id', sa.Integer(),
                  sa.ForeignKey('object_types.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('child_object_type_id', sa.Integer(),
                  sa.ForeignKey('object_types.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('mirrored_type_id', sa.Integer(),
                  sa.ForeignKey('object_relation_types.id', ondelete='SET NULL'), nullable=True,
                  comment='Relation type expected in reverse'),
    )
    op.create_index('ix_object_relation_types_parent_object_type_id',
                    'object_relation_types', ['parent_object_type_id'])
    op.create_index('ix_object_relation_types_child_object_type_id',
                    'object_relation_types', ['child_object_type_id'])

    op.create_table(
        'object_relations',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('object_from_id', sa.BigInteger(),
                  sa.ForeignKey('objects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('object_to_id', sa.BigInteger(),
                  sa.ForeignKey('objects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('object_relation_type_id', sa.Integer(),
                  sa.ForeignKey('object_relation_types.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('note', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('created_by', sa.BigInteger(),
                  sa.ForeignKey('objects.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('ix_object_relations_object_from_id', 'object_relations', ['object_from_id'])
    op.create_index('ix_object_relations_object_to_id', 'object_relations', ['object_to_id'])
    op.create_index('ix_object_relations_object_relation_type_id',
                    'object_relations', ['object_relation_type_id'])
    op.create_index('ix_object_relations_is_active', 'object_relations', ['is_active'])
    op.create_index('idx_object_relations_from_to', 'object_relations', ['object_from_id', 'object_to_id'])
    op.create_index('idx_object_relations_to_from', 'object_relations', ['object_to_id', 'object_from_id'])


def downgrade() -> None:
    """Drop object store and relation tables."""
    op.drop_table('object_relations')
    op.drop_table('object_relation_types')
    for table in ('files', 'transactions', 'invoices', 'documents', 'users', 'companies', 'persons'):
        op.drop_table(table)
    op.drop_table('objects')
    for table in ('currencies', 'transaction_types', 'salutations', 'sexes', 'object_statuses',
                  'object_types', 'translations', 'languages'):
        op.drop_table(table)
