VERSION = "0.1.0"


from ._ds import Headers as Headers
from ._ds import Wire as Wire
from .attributes import Attributes as Attributes
from .binding import HTTPBinding as HTTPBinding
from .codecs import CodecRegistry as CodecRegistry
from .codecs import PayloadCodec as PayloadCodec
from .config import V0_1 as V0_1
from .config import V0_2 as V0_2
from .config import BindingConfig as BindingConfig
from .config import SpecVersion as SpecVersion
from .event import CloudEvent as CloudEvent
from .event import CloudEventBuilder as CloudEventBuilder
from .extensions import DistributedTracing as DistributedTracing
from .extensions import ExtensionFormat as ExtensionFormat
from .extensions import ExtensionRegistry as ExtensionRegistry
from .pipeline import Pipeline as Pipeline
from .pipeline import Stage as Stage
