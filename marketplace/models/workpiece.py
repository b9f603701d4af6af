from marketplace.extensions import db


class Workpiece(db.Model):
    __tablename__ = "workpieces"

    __table_args__ = (
        db.Index("idx_workpieces_technology", "technology"),
        db.Index("idx_workpieces_material", "material"),
    )

    id = db.Column(db.Integer, primary_key=True)
    rfq_id = db.Column(
        db.String(50),
        db.ForeignKey("rfqs.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    position = db.Column(db.Integer, nullable=False, default=0)

    main_file = db.Column(db.String(1024), nullable=False)
    extra_files = db.Column(db.JSON, default=list)
    part_type = db.Column(db.String(100))
    technology = db.Column(db.String(50), nullable=False)
    material = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    length = db.Column(db.Float, default=0)
    width = db.Column(db.Float, default=0)
    height = db.Column(db.Float, default=0)
    diameter = db.Column(db.Float, default=0)

    @property
    def dimensions(self):
        return {
            "length": self.length or 0,
            "width": self.width or 0,
            "height": self.height or 0,
            "diameter": self.diameter or 0,
        }

    def to_dict(self):
        return {
            "mainFile": self.main_file,
            "extraFiles": self.extra_files or [],
            "partType": self.part_type,
            "technology": self.technology,
            "material": self.material,
            "quantity": self.quantity,
            "dimensions": self.dimensions,
        }
