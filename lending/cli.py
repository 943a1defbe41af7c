import argparse

from lending.core.config import logger
from lending.core.database import Base, SessionLocal, engine
from lending.models.models import Item, Member, Role, Tenant
from lending.services.overdue import list_overdue


def seed(db):
    # quick idempotent seed
    if db.query(Tenant).count() == 0:
        north = Tenant(name='North Primary', slug='north-primary')
        south = Tenant(name='South High', slug='south-high')
        db.add_all([north, south])
        db.flush()
        db.add_all([
            Member(name='Platform Admin', email='root@example.com', role=Role.SUPER_ADMIN.value),
            Member(name='Ada', email='ada@example.com', role=Role.ADMIN.value, tenant_id=north.id),
            Member(name='Alice', email='alice@example.com', tenant_id=north.id),
            Member(name='Bob', email='bob@example.com', tenant_id=south.id),
            Item(title='Data Engineering with Python', author='J. Reader', code='978-1111111111',
                 total_copies=3, available_copies=3, tenant_id=north.id),
            Item(title='Designing Data-Intensive Applications', author='Martin Kleppmann',
                 code='978-0980000000', total_copies=2, available_copies=2, tenant_id=south.id),
        ])
    db.commit()
    logger.info('Seeded sample data')


def main(argv=None):
    parser = argparse.ArgumentParser(description='Lending registry utilities')
    parser.add_argument('--initdb', action='store_true', help='Create tables')
    parser.add_argument('--seed', action='store_true', help='Seed sample data')
    parser.add_argument('--overdue', action='store_true', help='Print overdue loans across all tenants')
    args = parser.parse_args(argv)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if args.seed:
            seed(db)
        if args.overdue:
            for loan in list_overdue(db):
                print(f"loan={loan.id} tenant={loan.tenant_id} member={loan.member_id} "
                      f"item={loan.item_id} due={loan.due_date.isoformat()}")
    finally:
        db.close()
    print('Done')


if __name__ == '__main__':
    main()
