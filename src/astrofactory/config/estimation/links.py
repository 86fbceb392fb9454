from ..core import SetupBase


class LinkEndSetup(SetupBase):

    body: str
    reference_point: str = "origin"
    present: bool = True


class LinkDefinitionSetup(SetupBase):

    transmitter: LinkEndSetup
    reflector1: LinkEndSetup
    reflector2: LinkEndSetup
    reflector3: LinkEndSetup
    reflector4: LinkEndSetup
    receiver: LinkEndSetup
    observed_body: LinkEndSetup
