"""Demo data loaded into a fresh in-memory store"""
from decimal import Decimal

from domain.entities import Hotel, RoomType, Room
from infrastructure.repositories.in_memory_repositories import InMemoryStore


def seed_demo_data(store: InMemoryStore) -> None:
    """Two hotels with a handful of room types and rooms"""
    hotels = [
        Hotel(name="Harbor View Hotel", brand="Harbor", address_line1="1 Pier Road",
              city="Seattle", state="WA", country="USA", postal_code="98101",
              star_rating=Decimal("4.5")),
        Hotel(name="Airport Inn", address_line1="200 Runway Ave",
              city="Denver", state="CO", country="USA", postal_code="80249",
              star_rating=Decimal("3.0")),
    ]
    for hotel in hotels:
        hotel_id = store.next_id("hotels")
        store.hotels[hotel_id] = hotel.model_copy(update={"hotel_id": hotel_id})

    room_types = [
        RoomType(hotel_id=1, code="STD", name="Standard Queen", bed_type="QUEEN",
                 capacity=2, total_rooms=10, base_rate=Decimal("120.00"), ranking=1),
        RoomType(hotel_id=1, code="DLX", name="Deluxe King", bed_type="KING",
                 capacity=3, total_rooms=5, base_rate=Decimal("180.00"), ranking=2),
        RoomType(hotel_id=1, code="STE", name="Harbor Suite", bed_type="KING",
                 capacity=4, total_rooms=2, base_rate=Decimal("300.00"), ranking=3),
        RoomType(hotel_id=2, code="STD", name="Standard Double", bed_type="DOUBLE",
                 capacity=2, total_rooms=3, base_rate=Decimal("90.00"), ranking=1),
    ]
    for room_type in room_types:
        room_type_id = store.next_id("room_types")
        store.room_types[room_type_id] = room_type.model_copy(update={"room_type_id": room_type_id})

    rooms = [
        Room(hotel_id=1, room_type_id=1, room_number="101", floor=1),
        Room(hotel_id=1, room_type_id=1, room_number="102", floor=1),
        Room(hotel_id=1, room_type_id=2, room_number="201", floor=2),
        Room(hotel_id=1, room_type_id=3, room_number="301", floor=3),
        Room(hotel_id=2, room_type_id=4, room_number="1A", floor=1),
    ]
    for room in rooms:
        room_id = store.next_id("rooms")
        store.rooms[room_id] = room.model_copy(update={"room_id": room_id})
