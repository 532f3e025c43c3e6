# create_tables() and the test fixtures rely on these imports to populate Base.metadata
from .vehicle import Vehicle
from .driver import Driver
from .inspection import Inspection
