from decimal import Decimal

from models.Material import Material, MaterialUnitEnum
from models.Product import Product
from models.User import User
from services.hpp_services import HppService


def _user(db, email):
    user = User(name="U", email=email, password="x")
    db.add(user)
    db.commit()
    return user


def _material(db, owner, name, price):
    material = Material(owner_id=owner.id, name=name, unit=MaterialUnitEnum.KG, price_per_unit=price, stock=0)
    db.add(material)
    db.commit()
    return material


class TestSumMaterialCosts:
    def test_sums_price_times_quantity(self):
        prices = {1: Decimal("1000"), 2: Decimal("250.5")}
        lines = [(1, Decimal("2")), (2, Decimal("4"))]
        assert HppService.sum_material_costs(lines, prices) == Decimal("3002")

    def test_skips_unresolved_lines(self):
        prices = {1: Decimal("1000")}
        lines = [(1, Decimal("1")), (99, Decimal("5")), (None, Decimal("3"))]
        assert HppService.sum_material_costs(lines, prices) == Decimal("1000")

    def test_empty(self):
        assert HppService.sum_material_costs([], {}) == Decimal("0")


class TestCalculate:
    def test_other_owners_materials_are_ignored(self, db_session):
        me = _user(db_session, "me@test.com")
        them = _user(db_session, "them@test.com")
        mine = _material(db_session, me, "Tepung", Decimal("10000"))
        theirs = _material(db_session, them, "Tepung", Decimal("99999"))

        lines = [(mine.id, Decimal("1.5")), (theirs.id, Decimal("1"))]
        assert HppService.calculate(db_session, me.id, lines) == Decimal("15000")

    def test_apply_and_recalculate(self, db_session):
        me = _user(db_session, "me@test.com")
        flour = _material(db_session, me, "Tepung", Decimal("10000"))

        product = Product(owner_id=me.id, name="Roti", selling_price=Decimal("30000"))
        HppService.apply_materials(db_session, product, [(flour.id, Decimal("2"))])
        db_session.add(product)
        db_session.commit()
        assert product.hpp == Decimal("20000")
        assert product.margin == Decimal("10000")

        flour.price_per_unit = Decimal("11000")
        db_session.commit()
        assert HppService.recalculate(db_session, product) == Decimal("22000")
