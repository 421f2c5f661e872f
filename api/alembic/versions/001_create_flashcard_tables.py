"""Create flashcard deck and flashcard tables

Revision ID: 001_create_flashcard_tables
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_create_flashcard_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Create flashcard_decks and flashcards tables.
    Flashcards are deleted together with their deck.
    """
    op.create_table(
        'flashcard_decks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('is_shared', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('ai_generated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='flashcard_decks_pkey')
    )

    op.create_table(
        'flashcards',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('deck_id', sa.Integer(), nullable=False),
        sa.Column('front', sa.String(), nullable=False),
        sa.Column('back', sa.String(), nullable=False),
        sa.Column('difficulty', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_reviewed', sa.DateTime(), nullable=True),
        sa.Column('next_review', sa.DateTime(), nullable=True),
        sa.Column('spaced_repetition_data', sa.JSON(), nullable=False, server_default='{}'),
        sa.Column('ai_generated', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(
            ['deck_id'], ['flashcard_decks.id'],
            name='flashcards_deck_id_fkey',
            ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id', name='flashcards_pkey'),
        sa.CheckConstraint(
            'next_review IS NULL OR last_reviewed IS NULL OR next_review >= last_reviewed',
            name='flashcards_review_order_check'
        )
    )

    # Create index on deck_id for query performance
    op.create_index(op.f('ix_flashcards_deck_id'), 'flashcards', ['deck_id'], unique=False)


def downgrade() -> None:
    """
    Drop flashcards and flashcard_decks tables.
    """
    op.drop_index(op.f('ix_flashcards_deck_id'), table_name='flashcards')
    op.drop_table('flashcards')
    op.drop_table('flashcard_decks')
