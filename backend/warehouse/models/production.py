from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date


class ProductRecipe(db.Model):
    """
    Bill of materials for a product.

    One active recipe per product; older recipes are kept inactive so
    production batches keep pointing at what they were planned with.
    """
    __tablename__ = "product_recipes"
    __table_args__ = (
        db.Index("ix_product_recipes_product_active", "product_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    estimated_time_hours = db.Column(db.Float, nullable=False, default=1.0)
    complexity = db.Column(db.String(16), nullable=False, default="Medium")  # Low, Medium, High
    batch_size = db.Column(db.Integer, nullable=False, default=1)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("recipes", lazy=True))
    materials = db.relationship(
        "RecipeMaterial",
        backref="recipe",
        lazy=True,
        order_by="RecipeMaterial.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": self.product.name if self.product else None,
            "category": self.product.category if self.product else None,
            "estimated_time_hours": self.estimated_time_hours,
            "complexity": self.complexity,
            "batch_size": self.batch_size,
            "is_active": self.is_active,
            "materials": [m.to_dict() for m in self.materials],
        }


class RecipeMaterial(db.Model):
    """Quantity of one raw material needed per produced unit."""
    __tablename__ = "recipe_materials"
    __table_args__ = (
        db.UniqueConstraint("recipe_id", "material_id", name="uq_recipe_materials_recipe_material"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey("product_recipes.id"), nullable=False, index=True)
    material_id = db.Column(db.Integer, db.ForeignKey("raw_materials.id"), nullable=False, index=True)

    required_quantity = db.Column(db.Float, nullable=False)
    wastage_percent = db.Column(db.Float, nullable=False, default=0.0)

    material = db.relationship("RawMaterial")

    def to_dict(self) -> dict:
        return {
            "material_id": self.material_id,
            "material_name": self.material.name if self.material else None,
            "required_quantity": self.required_quantity,
            "unit": self.material.unit if self.material else None,
            "wastage_percent": self.wastage_percent,
        }


class ProductionBatch(db.Model):
    """
    Planned production run.

    STATUSES: PLANNED, IN_PROGRESS, COMPLETED, ON_HOLD
    """
    __tablename__ = "production_batches"
    __table_args__ = (
        db.UniqueConstraint("batch_number", name="uq_production_batches_number"),
        db.Index("ix_production_batches_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_number = db.Column(db.String(64), nullable=False)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey("product_recipes.id"), nullable=False)

    planned_quantity = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="PLANNED", index=True)
    progress_percent = db.Column(db.Float, nullable=False, default=0.0)

    start_date = db.Column(db.Date, nullable=False)
    estimated_completion_date = db.Column(db.Date, nullable=True)

    # Snapshot of the feasibility calculation at planning time
    total_cost = db.Column(db.Float, nullable=False, default=0.0)
    feasible_at_planning = db.Column(db.Boolean, nullable=False, default=True)

    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product")
    recipe = db.relationship("ProductRecipe")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "batch_number": self.batch_number,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.planned_quantity,
            "status": self.status,
            "progress": self.progress_percent,
            "start_date": to_iso_date(self.start_date),
            "estimated_completion": to_iso_date(self.estimated_completion_date),
            "total_cost": round(self.total_cost, 2),
            "feasible_at_planning": self.feasible_at_planning,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
