"""Built-in target kinds.

Import order is declaration order: every lifecycle phase visits kinds in the
order they are registered here.
"""

from . import mprocs as mprocs
from . import coreutils as coreutils
from . import rabbitmq as rabbitmq
from . import surrealdb as surrealdb
from . import mindustry as mindustry
from . import java as java
from . import coreplugin as coreplugin
from . import forts as forts
from . import hub as hub
from . import hexed as hexed

# started by "run"; registers every service
SUPERVISOR = "mprocs"
