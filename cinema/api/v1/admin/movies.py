from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cinema.db.session import get_db
from cinema.db.types import utcnow
from cinema.api.deps import get_current_admin_user
from cinema.models.user import User
from cinema.models.movie import Movie
from cinema.models.screening import Screening
from cinema.schemas.movie import MovieCreate, MovieUpdate, Movie as MovieSchema
from cinema.schemas.common import PaginatedResponse

router = APIRouter(prefix="/admin/movies", tags=["Admin - Movies"])


@router.post("/", response_model=MovieSchema, status_code=status.HTTP_201_CREATED)
def create_movie(
    data: MovieCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = Movie(**data.model_dump())
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


@router.get("/", response_model=PaginatedResponse[MovieSchema])
def list_movies(
    search: Optional[str] = Query(None, description="Case-insensitive title search"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(Movie).filter(Movie.is_active == True)
    if search:
        query = query.filter(Movie.title.ilike(f"%{search}%"))

    total = query.count()
    movies = query.order_by(Movie.title).offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=movies,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{id}", response_model=MovieSchema)
def get_movie(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = db.query(Movie).filter(Movie.id == id).first()
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")
    return movie


@router.patch("/{id}", response_model=MovieSchema)
def update_movie(
    id: UUID,
    data: MovieUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = db.query(Movie).filter(Movie.id == id, Movie.is_active == True).first()
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")

    changes = data.model_dump(exclude_unset=True)
    if "duration_minutes" in changes and changes["duration_minutes"] != movie.duration_minutes:
        # A new runtime would silently move the end of already scheduled showings
        upcoming = (
            db.query(Screening.id)
            .filter(
                Screening.movie_id == id,
                Screening.is_active == True,
                Screening.show_time > utcnow(),
            )
            .first()
        )
        if upcoming:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Cannot change the runtime of a movie with upcoming screenings",
            )

    for field, value in changes.items():
        setattr(movie, field, value)

    db.commit()
    db.refresh(movie)
    return movie


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_movie(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    movie = db.query(Movie).filter(Movie.id == id, Movie.is_active == True).first()
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")

    movie.is_active = False
    db.commit()
    return {"id": str(id), "is_active": False}
