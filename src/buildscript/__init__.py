"""buildscript - acquire, build and run the targets of a multi-component workspace."""

from .collection import TargetCollection as TargetCollection
from .config import EnvMode as EnvMode
from .config import Settings as Settings
from .enablement import Enablement as Enablement
from .engine import Engine as Engine
from .lifecycle import Lifecycle as Lifecycle
from .params import BuildParams as BuildParams
from .params import Command as Command
from .params import InitParams as InitParams
from .params import RunParams as RunParams
from .recipe import Recipe as Recipe
from .supervisor import ProcessSupervisor as ProcessSupervisor
from .target import Registry as Registry
from .target import Target as Target
from .target import TargetFlags as TargetFlags
from .target import target as target
from .workspace import Workspace as Workspace
