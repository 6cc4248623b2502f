from app.models.player import Player
from app.models.game import Game, PlayerGameResult
from app.models.deletion_credential import DeletionCredential, DeletionResetToken
