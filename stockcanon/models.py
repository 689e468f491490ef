from datetime import datetime

from stockcanon.extensions import db
from stockcanon.utils.unit_conversion import ConversionRate


class Location(db.Model):
    __tablename__ = "location"
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String, unique=True, nullable=False)  # canonical slot, e.g. A1/1
    description = db.Column(db.String)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
        }


class ProductConversionRate(db.Model):
    __tablename__ = "product_conversion_rate"

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String, unique=True, nullable=False)
    product_name = db.Column(db.String, nullable=True)
    unit_level1_name = db.Column(db.String(64), nullable=True)  # e.g. case
    unit_level1_rate = db.Column(db.Integer, nullable=True)
    unit_level2_name = db.Column(db.String(64), nullable=True)  # e.g. box
    unit_level2_rate = db.Column(db.Integer, nullable=True)
    unit_level3_name = db.Column(db.String(64), nullable=True)  # loose unit
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def to_rate(self) -> ConversionRate:
        return ConversionRate(
            level1_rate=self.unit_level1_rate,
            level2_rate=self.unit_level2_rate,
            level1_name=self.unit_level1_name,
            level2_name=self.unit_level2_name,
            level3_name=self.unit_level3_name,
        )

    def apply_rate(self, rate: ConversionRate) -> None:
        self.unit_level1_rate = rate.level1_rate
        self.unit_level2_rate = rate.level2_rate
        self.unit_level1_name = rate.level1_name
        self.unit_level2_name = rate.level2_name
        self.unit_level3_name = rate.level3_name

    def to_dict(self) -> dict:
        return {
            "sku": self.sku,
            "product_name": self.product_name,
            "unit_level1_name": self.unit_level1_name,
            "unit_level1_rate": self.unit_level1_rate,
            "unit_level2_name": self.unit_level2_name,
            "unit_level2_rate": self.unit_level2_rate,
            "unit_level3_name": self.unit_level3_name,
        }
