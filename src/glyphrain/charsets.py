# Half-width katakana used by the classic digital rain look
KATAKANA = "ﾊﾐﾋｰｳｼﾅﾓﾆｻﾜﾂｵﾘｱﾎﾃﾏｹﾒｴｶｷﾑﾕﾗｾﾈｽﾀﾇﾍ"

# Digits (no 6) and the punctuation mixed into the rain
DIGITS = "012345789"
SYMBOLS = ':・.="*+-<>¦｜'

RAIN = KATAKANA + DIGITS + SYMBOLS

# Plain ASCII fallback for fonts without katakana coverage
ASCII_RAIN = "0123456789:.=*+-<>|"
