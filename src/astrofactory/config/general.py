from .core import SetupBase

from .estimation import EstimationSetup
from pathlib import Path
import yaml
from ..logging import log


class CaseSetup(SetupBase):

    estimation: EstimationSetup
    frame_origin: str = "SSB"
    frame_orientation: str = "J2000"

    @classmethod
    def from_config_file(cls, config_path: Path) -> "CaseSetup":

        log.info(f"Loading configuration from {config_path}")

        with Path(config_path).open("r") as config_file:
            raw_config = yaml.safe_load(config_file)
        output = cls.from_raw(raw_config)

        log.info("Finished loading configuration")

        return output
