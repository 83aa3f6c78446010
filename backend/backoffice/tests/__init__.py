from decimal import Decimal

from django.contrib.auth.models import User

from ..models import Dealer, Product, Supplier


def create_user(username: str, password: str = "pw", **extra):
    return User.objects.create_user(username=username, password=password, **extra)


def create_dealer(user, name: str = "Dealer X", **extra):
    return Dealer.objects.create(dealer_name=name, created_by=user, **extra)


def create_supplier(user, name: str = "Supplier Y", **extra):
    return Supplier.objects.create(name=name, created_by=user, **extra)


def create_product(name: str = "Fertiliser", unit_price: str = "100.00"):
    return Product.objects.create(name=name, unit_price=Decimal(unit_price))


def invoice_items(product, quantity="1", unit_price="10000.00"):
    return [{"product": product, "quantity": Decimal(quantity), "unit_price": Decimal(unit_price)}]
