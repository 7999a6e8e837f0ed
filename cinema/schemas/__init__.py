from cinema.schemas.common import PaginatedResponse, BulkOperationResult
from cinema.schemas.user import User, UserCreate, AdminCreate, UserSummary, Token
from cinema.schemas.movie import Movie, MovieCreate, MovieUpdate
from cinema.schemas.theater import (
    Theater, TheaterCreate, TheaterUpdate,
    Room, RoomCreate, RoomUpdate, RoomSummary,
)
from cinema.schemas.screening import (
    Screening, ScreeningCreate, ScreeningUpdate, ScreeningListItem, ScreeningDetail,
    Schedule, ScheduleCreate, ScheduleCreateResponse, ScheduleConflict, ScheduleDeleteResponse,
)
from cinema.schemas.ticket import (
    Ticket, TicketPurchase, TicketCancel, TicketWithScreening, AdminTicket,
    TicketNote, TicketNoteCreate, BulkTicketOperation,
)
from cinema.schemas.promo_code import (
    PromoCode, PromoCodeCreate, PromoCodeUpdate, PromoCodeValidation,
)
