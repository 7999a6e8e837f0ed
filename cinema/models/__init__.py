from cinema.models.user import User
from cinema.models.movie import Movie
from cinema.models.theater import Theater, Room
from cinema.models.screening import Screening, ScreeningSchedule
from cinema.models.promo_code import PromoCode
from cinema.models.ticket import Ticket, TicketNote, TicketStatus
