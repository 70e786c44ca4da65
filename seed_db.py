from datetime import datetime, timezone

from sqlmodel import Session, select

from capitravel.core.database import create_db_and_tables, engine
from capitravel.models.sql_models import Category, Experience, Property, Reservation, User

CATEGORIES = ["Adventure", "Culture", "Gastronomy", "Nature", "Wellness"]
PROPERTIES = ["Guided tour", "Transport included", "Wifi", "Breakfast", "Pet friendly"]


def _get_or_create(session, model, name):
    row = session.exec(select(model).where(model.name == name)).first()
    if not row:
        row = model(name=name)
        session.add(row)
        print(f"{model.__name__} '{name}' created.")
    return row


def seed_db():
    create_db_and_tables()

    with Session(engine) as session:
        categories = {name: _get_or_create(session, Category, name) for name in CATEGORIES}
        properties = {name: _get_or_create(session, Property, name) for name in PROPERTIES}

        demo_user = session.exec(select(User).where(User.email == "traveler@capitravel.com")).first()
        if not demo_user:
            demo_user = User(name="Demo", lastname="Traveler", email="traveler@capitravel.com")
            session.add(demo_user)
            print("Demo user created.")

        tour = session.exec(select(Experience).where(Experience.title == "Bogota Street Food Tour")).first()
        if not tour:
            tour = Experience(
                title="Bogota Street Food Tour",
                country="Colombia",
                ubication="La Candelaria, Bogota",
                description="Four hours tasting arepas, tamales and local coffee.",
                images=[],
                quantity=4,
                time_unit="hours",
                categories=[categories["Gastronomy"], categories["Culture"]],
                properties=[properties["Guided tour"]],
                service_hours="09:00-13:00",
                available_days=["SATURDAY", "SUNDAY"],
            )
            session.add(tour)
            print("Sample experience created.")

        session.commit()

        has_reservation = session.exec(select(Reservation).where(Reservation.experience_id == tour.id)).first()
        if not has_reservation:
            session.add(
                Reservation(
                    experience_id=tour.id,
                    email=demo_user.email,
                    check_in=datetime(2026, 12, 5, 9, 0, tzinfo=timezone.utc),
                    check_out=datetime(2026, 12, 5, 13, 0, tzinfo=timezone.utc),
                )
            )
            session.commit()
            print("Sample reservation created.")

        print("Seed data synced.")


if __name__ == "__main__":
    seed_db()
