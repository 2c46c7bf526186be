from models.db import db

class Service(db.Model):
    __tablename__ = "services"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    duration = db.Column(db.Integer, nullable=False)  # minutes
    description = db.Column(db.Text, nullable=False)
    price = db.Column(db.String(80), nullable=True, default="Contact for pricing")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "duration": self.duration,
            "description": self.description,
            "price": self.price,
        }
