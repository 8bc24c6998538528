"""Entity store for found-dog listings and admin accounts.

`DogStore` is the data-access contract the HTTP layer talks to. `MemStorage`
keeps both tables in process memory, keyed by auto-incrementing integer ids;
everything is lost on restart. Ids are never reused and nothing is ever
deleted. Lookups that miss return None rather than raising, so the caller
decides how to report the absence.
"""
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from passlib.context import CryptContext

import settings
from errors import DuplicateUsernameError
from filters import filter_dogs, newest_first
from models import AccountCreate, AccountInDB, DogInDB, DogReportData

logger = settings.get_logger(__name__)

# Password hasher (salted, constant-time verify)
pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)

DEMO_DOGS = [
    {
        "breed": "Labrador",
        "color": "Golden",
        "description": "Friendly male Labrador with a blue collar. Very energetic and loves to play. Responds to 'Max'.",
        "image_urls": ["https://images.unsplash.com/photo-1587300003388-59208cc962cb?w=500&auto=format&fit=crop"],
        "address": "Central Park, Main Entrance",
        "city": "New York",
        "latitude": "40.7812",
        "longitude": "-73.9665",
        "date_found": "2025-03-28",
        "time_found": "14:30",
        "finder_name": "James Wilson",
        "finder_phone": "555-123-4567",
        "finder_email": "james.wilson@example.com",
    },
    {
        "breed": "German Shepherd",
        "color": "Black and Tan",
        "description": "Adult German Shepherd, appears well-trained. Has a red collar with no tag. Very calm and obedient.",
        "image_urls": ["https://images.unsplash.com/photo-1588943211346-0908a1fb0b01?w=500&auto=format&fit=crop"],
        "address": "Washington Square Park",
        "city": "New York",
        "latitude": "40.7308",
        "longitude": "-73.9973",
        "date_found": "2025-03-29",
        "time_found": "09:15",
        "finder_name": "Sarah Miller",
        "finder_phone": "555-987-6543",
        "finder_email": "sarah.m@example.com",
    },
    {
        "breed": "Beagle",
        "color": "Tricolor",
        "description": "Small beagle puppy, about 6 months old. Has a green collar with a bell. Very playful and friendly.",
        "image_urls": ["https://images.unsplash.com/photo-1505628346881-b72b27e84530?w=500&auto=format&fit=crop"],
        "address": "Prospect Park",
        "city": "Brooklyn",
        "latitude": "40.6602",
        "longitude": "-73.9690",
        "date_found": "2025-03-30",
        "time_found": "16:45",
        "finder_name": "David Johnson",
        "finder_phone": "555-234-5678",
        "finder_email": "david.j@example.com",
    },
    {
        "breed": "Husky",
        "color": "Gray and White",
        "description": "Beautiful adult husky with striking blue eyes. No collar but appears well-groomed and healthy. Very friendly with people.",
        "image_urls": ["https://images.unsplash.com/photo-1605568427561-40dd23c2acea?w=500&auto=format&fit=crop"],
        "address": "Battery Park",
        "city": "New York",
        "latitude": "40.7033",
        "longitude": "-74.0170",
        "date_found": "2025-03-31",
        "time_found": "11:20",
        "finder_name": "Emily Chen",
        "finder_phone": "555-876-5432",
        "finder_email": "emily.chen@example.com",
    },
    {
        "breed": "Poodle",
        "color": "White",
        "description": "Small toy poodle, recently groomed. Wearing a pink collar with rhinestones but no identification tag.",
        "image_urls": ["https://images.unsplash.com/photo-1591160690555-5debfba289f0?w=500&auto=format&fit=crop"],
        "address": "Bryant Park",
        "city": "New York",
        "latitude": "40.7536",
        "longitude": "-73.9832",
        "date_found": "2025-04-01",
        "time_found": "13:10",
        "finder_name": "Michael Brown",
        "finder_phone": "555-345-6789",
        "finder_email": "m.brown@example.com",
    },
]


class DogStore(ABC):
    """Data-access interface for listings and accounts."""

    # Dog operations
    @abstractmethod
    def create_dog(self, data: DogReportData) -> DogInDB: ...

    @abstractmethod
    def get_dog(self, dog_id: int) -> Optional[DogInDB]: ...

    @abstractmethod
    def list_dogs(self) -> List[DogInDB]: ...

    @abstractmethod
    def list_dogs_with_filters(self, breed: Optional[str] = None, city: Optional[str] = None,
                               query: Optional[str] = None) -> List[DogInDB]: ...

    @abstractmethod
    def update_dog_status(self, dog_id: int, status: str) -> Optional[DogInDB]: ...

    @abstractmethod
    def count_dogs(self) -> int: ...

    # Account operations
    @abstractmethod
    def create_account(self, data: AccountCreate) -> AccountInDB: ...

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[AccountInDB]: ...

    @abstractmethod
    def get_account_by_username(self, username: str) -> Optional[AccountInDB]: ...

    def verify_credentials(self, username: str, password: str) -> Optional[AccountInDB]:
        """Return the account if the password matches its stored hash, else None."""
        account = self.get_account_by_username(username)
        if account is None:
            # Burn a hash anyway so unknown usernames take as long as wrong passwords
            pwd_context.dummy_verify()
            return None
        if not pwd_context.verify(password, account.password_hash):
            return None
        return account


class MemStorage(DogStore):
    """In-memory implementation; one table per entity kind, guarded by a lock."""

    def __init__(self, admin_username: str = settings.ADMIN_USERNAME,
                 admin_password: str = settings.ADMIN_PASSWORD, seed_demo: bool = settings.SEED_DEMO_DATA):
        self._dogs: Dict[int, DogInDB] = {}
        self._accounts: Dict[int, AccountInDB] = {}
        self._next_dog_id = 1
        self._next_account_id = 1
        self._lock = threading.Lock()

        # Create an admin account by default
        admin = self.create_account(AccountCreate(username=admin_username, password=admin_password))
        admin.is_admin = True

        if seed_demo:
            for dog in DEMO_DOGS:
                self.create_dog(DogReportData(**dog))

    # --- Dog Operations ---
    def create_dog(self, data: DogReportData) -> DogInDB:
        with self._lock:
            dog_id = self._next_dog_id
            self._next_dog_id += 1
            dog = DogInDB(
                id=dog_id,
                status="active",
                created_at=datetime.now(timezone.utc),
                **data.model_dump(),
            )
            self._dogs[dog_id] = dog
        return dog

    def get_dog(self, dog_id: int) -> Optional[DogInDB]:
        return self._dogs.get(dog_id)

    def list_dogs(self) -> List[DogInDB]:
        return newest_first(list(self._dogs.values()))

    def list_dogs_with_filters(self, breed=None, city=None, query=None) -> List[DogInDB]:
        return filter_dogs(list(self._dogs.values()), breed=breed, city=city, query=query)

    def update_dog_status(self, dog_id: int, status: str) -> Optional[DogInDB]:
        """Replace the status of a listing. The caller has already checked the value."""
        with self._lock:
            dog = self._dogs.get(dog_id)
            if dog is None:
                return None
            dog.status = status
        return dog

    def count_dogs(self) -> int:
        return len(self._dogs)

    # --- Account Operations ---
    def create_account(self, data: AccountCreate) -> AccountInDB:
        with self._lock:
            if any(a.username == data.username for a in self._accounts.values()):
                raise DuplicateUsernameError(f"Username '{data.username}' is already taken")
            account_id = self._next_account_id
            self._next_account_id += 1
            account = AccountInDB(
                id=account_id,
                username=data.username,
                password_hash=pwd_context.hash(data.password),
                is_admin=False,
            )
            self._accounts[account_id] = account
        logger.info("Created account %s (id=%s)", account.username, account.id)
        return account

    def get_account(self, account_id: int) -> Optional[AccountInDB]:
        return self._accounts.get(account_id)

    def get_account_by_username(self, username: str) -> Optional[AccountInDB]:
        return next((a for a in self._accounts.values() if a.username == username), None)
