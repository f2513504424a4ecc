from bou_responder.datastructures import Count, OccupancyResult, QueryFailed, ReplyMessage

ERROR_HEADLINE = "boushitsu status: *error* (Sorry, something went wrong.) :x:"
ERROR_FOOTER = ":bow:_< Sorry_"
CLOSED_HEADLINE = "boushitsu status: *closed* :zzz:"
CLOSED_FOOTER = "No one is currently in the room."
OPEN_HEADLINE = "boushitsu status: *open* :heavy_check_mark:"
OPEN_FOOTER_PREFIX = "Currently in the room "
OCCUPANT_MARKER = ":bust_in_silhouette:"


def compose(result: OccupancyResult) -> ReplyMessage:
    """Maps an occupancy outcome to the reply shown to the requester."""
    match result:
        case QueryFailed():
            return ReplyMessage(headline=ERROR_HEADLINE, footer=ERROR_FOOTER)
        case Count(value=0):
            return ReplyMessage(headline=CLOSED_HEADLINE, footer=CLOSED_FOOTER)
        case Count(value=occupants):
            # One marker per occupant, never abbreviated.
            return ReplyMessage(
                headline=OPEN_HEADLINE, footer=OPEN_FOOTER_PREFIX + OCCUPANT_MARKER * occupants
            )
        case _:
            raise TypeError(f"Unknown occupancy result {result!r}")
