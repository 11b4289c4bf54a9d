from fastapi import APIRouter, HTTPException, Depends, status
from report_server.authentication import schemas, security
from report_server.errors import AuthError

router = APIRouter(prefix="/auth", tags=["authentication"])

# Login (dashboard session only; /api/* does not check it)
@router.post('', response_model=schemas.AuthResponse)
def authenticate(
    credentials: schemas.AuthRequest,
    validator: security.CredentialValidator = Depends(security.get_credential_validator),
):
    if not credentials.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password required!")

    if not validator.validate(credentials.password):
        error = AuthError("Invalid password!")
        raise HTTPException(status_code=error.status_code, detail=error.message)

    return {"success": True}
