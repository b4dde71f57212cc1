from fastapi.security import OAuth2PasswordBearer

# Supabase issues the access token; we only read it from the
# "Authorization: Bearer <token>" header. tokenUrl is required for
# OpenAPI compliance but never used. auto_error is off so the dependency
# can answer with its own 401.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)
