"""initial_tables

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the schema for the SRI Document Identity API"""

    # Create tenants table
    op.create_table('tenants',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('ruc', sa.String(length=13), nullable=False, comment='Ecuadorian tax registration number (13 digits)'),
        sa.Column('razon_social', sa.String(length=300), nullable=False, comment='Legal name'),
        sa.Column('nombre_comercial', sa.String(length=300), nullable=True, comment='Commercial/trade name'),
        sa.Column('ambiente', sa.String(length=1), nullable=False, server_default='1', comment='SRI environment: 1 = pruebas, 2 = produccion'),
        sa.Column('activo', sa.Boolean(), nullable=False, server_default=sa.true(), comment='Account active status'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('length(ruc) = 13', name='ck_tenants_ruc_length'),
        sa.CheckConstraint("ambiente IN ('1', '2')", name='ck_tenants_ambiente')
    )
    op.create_index('ix_tenants_id', 'tenants', ['id'])
    op.create_index('ix_tenants_ruc', 'tenants', ['ruc'], unique=True)

    # Create establishments table
    op.create_table('establecimientos',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('codigo', sa.String(length=3), nullable=False, comment='3-digit establishment code (001-999)'),
        sa.Column('nombre', sa.String(length=300), nullable=False, comment='Establishment name'),
        sa.Column('direccion', sa.String(length=300), nullable=True, comment='Establishment address'),
        sa.Column('activo', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('tenant_id', 'codigo', name='uq_establecimientos_tenant_codigo'),
        sa.CheckConstraint("codigo <> '000'", name='ck_establecimientos_codigo')
    )
    op.create_index('ix_establecimientos_id', 'establecimientos', ['id'])
    op.create_index('ix_establecimientos_tenant_id', 'establecimientos', ['tenant_id'])

    # Create emission points table
    op.create_table('puntos_emision',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('establecimiento_id', sa.Uuid(), nullable=False),
        sa.Column('codigo', sa.String(length=3), nullable=False, comment='3-digit emission point code (001-999)'),
        sa.Column('nombre', sa.String(length=300), nullable=False, comment='Emission point name'),
        sa.Column('activo', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['establecimiento_id'], ['establecimientos.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('establecimiento_id', 'codigo', name='uq_puntos_emision_establecimiento_codigo'),
        sa.CheckConstraint("codigo <> '000'", name='ck_puntos_emision_codigo')
    )
    op.create_index('ix_puntos_emision_id', 'puntos_emision', ['id'])
    op.create_index('ix_puntos_emision_tenant_id', 'puntos_emision', ['tenant_id'])
    op.create_index('ix_puntos_emision_establecimiento_id', 'puntos_emision', ['establecimiento_id'])

    # Create document sequences table (one counter row per scope)
    op.create_table('secuencias_documento',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('punto_emision_id', sa.Uuid(), nullable=False),
        sa.Column('tipo_documento', sa.String(length=2), nullable=False, comment='SRI document type code'),
        sa.Column('siguiente_secuencial', sa.Integer(), nullable=False, server_default='1', comment='Next sequential to be reserved'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['punto_emision_id'], ['puntos_emision.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('tenant_id', 'punto_emision_id', 'tipo_documento', name='uq_secuencias_documento_scope'),
        sa.CheckConstraint('siguiente_secuencial >= 1', name='ck_secuencias_documento_positive')
    )

    # Create issued documents table
    op.create_table('documentos_emitidos',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('tenant_id', sa.Uuid(), nullable=False),
        sa.Column('punto_emision_id', sa.Uuid(), nullable=False),
        sa.Column('tipo_documento', sa.String(length=2), nullable=False, comment='SRI document type code'),
        sa.Column('numero_documento', sa.String(length=17), nullable=False, comment='NNN-NNN-NNNNNNNNN'),
        sa.Column('secuencial', sa.Integer(), nullable=False),
        sa.Column('clave_acceso', sa.String(length=49), nullable=False, comment='49-digit SRI access key'),
        sa.Column('fecha_emision', sa.Date(), nullable=False),
        sa.Column('ambiente', sa.String(length=1), nullable=False),
        sa.Column('tipo_emision', sa.String(length=1), nullable=False, server_default='1'),
        sa.Column('anulado', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('fecha_anulacion', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['punto_emision_id'], ['puntos_emision.id']),
        sa.UniqueConstraint('tenant_id', 'tipo_documento', 'numero_documento', name='uq_documentos_emitidos_numero'),
        sa.UniqueConstraint('clave_acceso', name='uq_documentos_emitidos_clave'),
        sa.CheckConstraint('length(numero_documento) = 17', name='ck_documentos_emitidos_numero_length'),
        sa.CheckConstraint('length(clave_acceso) = 49', name='ck_documentos_emitidos_clave_length')
    )
    op.create_index('ix_documentos_emitidos_id', 'documentos_emitidos', ['id'])
    op.create_index('ix_documentos_emitidos_tenant_id', 'documentos_emitidos', ['tenant_id'])
    op.create_index('idx_documentos_emitidos_punto_tipo', 'documentos_emitidos', ['punto_emision_id', 'tipo_documento'])


def downgrade() -> None:
    """Drop all tables"""
    op.drop_table('documentos_emitidos')
    op.drop_table('secuencias_documento')
    op.drop_table('puntos_emision')
    op.drop_table('establecimientos')
    op.drop_table('tenants')
