from decimal import Decimal

from accounts.models import User
from agents.services import create_agent
from inventory.services import create_item
from inventory.transfer_models import WarehouseTransfer

CUSTOMER = {
    'name': 'Mona Hassan',
    'phone': '01555123456',
    'national_id': '29001011234567',
    'id_card_front_image_url': 'https://res.cloudinary.com/demo/id-front.jpg',
}


def make_user(role, email, name=None):
    return User.objects.create_user(email=email, password='testpass123', name=name or email.split('@')[0],
                                    role=role)


def make_agent_with_login(name, phone, email, created_by=None, commission_rate=Decimal('10')):
    return create_agent(name=name, phone=phone, created_by=created_by, commission_rate=commission_rate,
                        user_email=email, user_password='testpass123')


def add_vehicle(warehouse, fingerprint, price, created_by=None, brand='Bajaj', model='Boxer'):
    """Register a vehicle in ``warehouse``; the chassis number mirrors the fingerprint."""
    return create_item({
        'motor_fingerprint': fingerprint,
        'chassis_number': fingerprint.replace('MTR', 'CHS'),
        'brand': brand,
        'model': model,
        'purchase_price': Decimal(price),
    }, warehouse, created_by=created_by)


def stock_agent(main, agent, fingerprint, price, created_by=None):
    item = add_vehicle(main, fingerprint, price, created_by=created_by)
    WarehouseTransfer.execute(main, agent.warehouse, [item], created_by=created_by)
    item.refresh_from_db()
    agent.refresh_from_db()
    return item
