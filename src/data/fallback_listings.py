"""Built-in listing collection served when the listings table is unreachable.

These rows predate moderation and carry no status, so they are treated as
approved by the public visibility rule.
"""

from functools import lru_cache

from src.models.listing import Listing

FALLBACK_LISTING_ROWS: list[dict] = [
    {
        "id": 1,
        "title": "Sunset RV Resort",
        "description": "Beautiful RV resort with stunning sunset views, full hookups, and premium amenities. Located in a prime tourist destination with year-round bookings.",
        "price": 2500000,
        "city": "Sedona",
        "state": "AZ",
        "latitude": 34.8697,
        "longitude": -111.7610,
        "location_set": True,
        "images": [
            "https://images.unsplash.com/photo-1544966503-7cc5ac882d5f?auto=format&fit=crop&w=800&q=80",
            "https://images.unsplash.com/photo-1571863533956-01c88e79957e?auto=format&fit=crop&w=800&q=80",
        ],
        "num_sites": 120,
        "occupancy_rate": 85,
        "annual_revenue": 1800000,
        "cap_rate": 7.2,
        "property_type": "RV Resort",
        "amenities": {"Full Hookups": True, "Pool": True, "Clubhouse": True},
        "created_at": "2024-01-15T00:00:00+00:00",
        "featured": True,
    },
    {
        "id": 2,
        "title": "Mountain View Campground",
        "description": "Established family campground with mountain views, hiking trails, and recreational facilities. Excellent cash flow and growth potential.",
        "price": 1200000,
        "city": "Asheville",
        "state": "NC",
        "latitude": 35.5951,
        "longitude": -82.5515,
        "location_set": True,
        "images": [
            "https://images.unsplash.com/photo-1504280390367-361c6d9f38f4?auto=format&fit=crop&w=800&q=80",
            "https://images.unsplash.com/photo-1517824806704-9040b037703b?auto=format&fit=crop&w=800&q=80",
        ],
        "num_sites": 75,
        "occupancy_rate": 70,
        "annual_revenue": 850000,
        "cap_rate": 6.8,
        "property_type": "Campground",
        "amenities": {"Hiking Trails": True, "Playground": True},
        "created_at": "2024-01-20T00:00:00+00:00",
        "featured": False,
    },
    {
        "id": 3,
        "title": "Lakeside RV Park",
        "description": "Well-maintained RV park on a beautiful lake, offering fishing, boating, and swimming. High demand and repeat customers.",
        "price": 1850000,
        "city": "Orlando",
        "state": "FL",
        "latitude": 28.5383,
        "longitude": -81.3792,
        "location_set": True,
        "images": [
            "https://images.unsplash.com/photo-1568699997478-d9f89c4c81a5?auto=format&fit=crop&w=800&q=80",
            "https://images.unsplash.com/photo-1519677381594-147eb34a36ca?auto=format&fit=crop&w=800&q=80",
            "https://images.unsplash.com/photo-1542739675-b983c9110889?auto=format&fit=crop&w=800&q=80",
        ],
        "num_sites": 90,
        "occupancy_rate": 78,
        "annual_revenue": 1200000,
        "cap_rate": 6.5,
        "property_type": "RV Park",
        "amenities": {"Waterfront": True, "Fishing": True, "Boat Ramp": True},
        "created_at": "2024-01-25T00:00:00+00:00",
        "featured": True,
    },
    {
        "id": 4,
        "title": "Redwood Forest Campground",
        "description": "Secluded campground surrounded by towering redwood trees, offering a unique nature experience. Ideal for outdoor enthusiasts and nature lovers.",
        "price": 950000,
        "city": "Crescent City",
        "state": "CA",
        "latitude": 41.7527,
        "longitude": -124.0975,
        "location_set": True,
        "images": [
            "https://images.unsplash.com/photo-1501785888041-a3ef645ac839?auto=format&fit=crop&w=800&q=80",
            "https://images.unsplash.com/photo-1441974231531-c6227db76b6e?auto=format&fit=crop&w=800&q=80",
        ],
        "num_sites": 50,
        "occupancy_rate": 65,
        "annual_revenue": 550000,
        "cap_rate": 6.2,
        "property_type": "Campground",
        "amenities": {"Hiking Trails": True, "Pet Friendly": True},
        "created_at": "2024-02-01T00:00:00+00:00",
        "featured": False,
    },
    {
        "id": 5,
        "title": "Desert Oasis RV Resort",
        "description": "Luxury RV resort in the heart of the desert, featuring a pool, spa, and clubhouse. Perfect for snowbirds and long-term stays.",
        "price": 3200000,
        "city": "Palm Springs",
        "state": "CA",
        "latitude": 33.8303,
        "longitude": -116.5453,
        "location_set": True,
        "images": [
            "https://images.unsplash.com/photo-1519677381594-147eb34a36ca?auto=format&fit=crop&w=800&q=80",
            "https://images.unsplash.com/photo-1544966503-7cc5ac882d5f?auto=format&fit=crop&w=800&q=80",
        ],
        "num_sites": 150,
        "occupancy_rate": 90,
        "annual_revenue": 2500000,
        "cap_rate": 7.8,
        "property_type": "RV Resort",
        "amenities": {"Pool": True, "Clubhouse": True, "WiFi": True, "Full Hookups": True},
        "created_at": "2024-02-05T00:00:00+00:00",
        "featured": True,
    },
    {
        "id": 6,
        "title": "Seaside Campground",
        "description": "Picturesque campground located on the coast, offering beach access and ocean views. Popular destination for summer vacations and weekend getaways.",
        "price": 1500000,
        "city": "Myrtle Beach",
        "state": "SC",
        "latitude": 33.6891,
        "longitude": -78.8867,
        "location_set": True,
        "images": [
            "https://images.unsplash.com/photo-1504280390367-361c6d9f38f4?auto=format&fit=crop&w=800&q=80",
            "https://images.unsplash.com/photo-1542739675-b983c9110889?auto=format&fit=crop&w=800&q=80",
        ],
        "num_sites": 80,
        "occupancy_rate": 75,
        "annual_revenue": 950000,
        "cap_rate": 6.4,
        "property_type": "Campground",
        "amenities": {"Waterfront": True, "Laundry": True, "Bathhouse": True},
        "created_at": "2024-02-10T00:00:00+00:00",
        "featured": False,
    },
]


@lru_cache(maxsize=1)
def _load() -> tuple[Listing, ...]:
    return tuple(Listing.model_validate(row) for row in FALLBACK_LISTING_ROWS)


def get_fallback_listings() -> list[Listing]:
    """Validated fallback listings (fresh list, shared immutable-by-convention models)."""
    return list(_load())
